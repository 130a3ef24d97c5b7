"""
Logging configuration for Summit Desk.

Single 'summitdesk' logger; engine and API modules log through child loggers
(logging.getLogger(__name__)) which propagate to it.

  Log file : <LOG_DIR>/summitdesk.log   (LOG_DIR from config, default ./logs)
  Rotation : 5 MB x 3 backups
  Level    : LOG_LEVEL (DEBUG / INFO / WARNING / ERROR / CRITICAL),
             INFO when unset or unknown

The CLI logs to the file only, so command output stays clean. The API server
calls configure_logging(server=True): project records are also written to
stderr, and uvicorn's error and access logs are copied into the same file.

Usage
-----
    from summitdesk.logging_config import configure_logging, log_call

    configure_logging()              # CLI entry
    configure_logging(server=True)   # API startup

    @log_call
    def registrations_list(status):
        ...

Log format per line
-------------------
    2026-10-19 09:12:44 | INFO     | OK   list_cmd | 18ms
    2026-10-19 09:12:51 | WARNING  | Partnership intake rejected: duplicate email a@b.org
    2026-10-19 09:13:02 | ERROR    | FAIL status_cmd | OperationalError: connection refused | 4ms
"""

import functools
import logging
import logging.handlers
import sys
import time
from pathlib import Path

from summitdesk.config import config

LOG_FILE_NAME = "summitdesk.log"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

LOGGER_NAME = "summitdesk"
SERVER_LOGGERS = ("uvicorn.error", "uvicorn.access")

_FILE_HANDLER = "summitdesk-file"
_CONSOLE_HANDLER = "summitdesk-console"


def _level() -> int:
    return getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO)


def _named(logger: logging.Logger, name: str):
    for handler in logger.handlers:
        if handler.get_name() == name:
            return handler
    return None


def _file_handler(formatter: logging.Formatter) -> logging.Handler:
    log_dir = Path(config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.set_name(_FILE_HANDLER)
    handler.setFormatter(formatter)
    return handler


def configure_logging(server: bool = False) -> logging.Logger:
    """
    Set up the summitdesk logger and return it. Idempotent: repeated calls
    add no handlers, but a later server=True call still adds the stderr
    handler and the uvicorn hookup (`summitdesk serve` configures the CLI
    logger before the API starts).
    """
    logger = logging.getLogger(LOGGER_NAME)
    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)

    file_handler = _named(logger, _FILE_HANDLER)
    if file_handler is None:
        logger.setLevel(_level())
        file_handler = _file_handler(formatter)
        logger.addHandler(file_handler)

    if server and _named(logger, _CONSOLE_HANDLER) is None:
        console = logging.StreamHandler(sys.stderr)
        console.set_name(_CONSOLE_HANDLER)
        console.setFormatter(formatter)
        logger.addHandler(console)
        for name in SERVER_LOGGERS:
            server_logger = logging.getLogger(name)
            if file_handler not in server_logger.handlers:
                server_logger.addHandler(file_handler)

    return logger


def log_call(func):
    """
    Decorator: logs entry, clean exit, and exceptions for any function.

    - DEBUG on entry   : CALL <name> | args=(...)
    - INFO  on success : OK   <name> | <N>ms
    - ERROR on failure : FAIL <name> | ExcType: message | <N>ms   (then re-raises)
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(LOGGER_NAME)
        name = func.__name__
        start = time.perf_counter()

        parts = [repr(a) for a in args] + [f"{k}={v!r}" for k, v in kwargs.items()]
        arg_str = ", ".join(parts) if parts else "-"
        logger.debug(f"CALL {name} | args=({arg_str})")

        try:
            result = func(*args, **kwargs)
            ms = int((time.perf_counter() - start) * 1000)
            logger.info(f"OK   {name} | {ms}ms")
            return result
        except Exception as exc:
            ms = int((time.perf_counter() - start) * 1000)
            logger.error(f"FAIL {name} | {type(exc).__name__}: {exc} | {ms}ms")
            raise

    return wrapper
