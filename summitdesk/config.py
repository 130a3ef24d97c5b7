"""
Summit Desk Configuration
Loads settings from environment variables with sensible defaults.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).parent.parent

# Load .env file
env_path = _PROJECT_ROOT / '.env'
load_dotenv(env_path)


def _split_csv(raw: str) -> list:
    return [part.strip() for part in raw.split(',') if part.strip()]


class Config:
    """Application configuration."""

    # Database: required, set it in .env
    DATABASE_URL = os.getenv('DATABASE_URL')
    if not DATABASE_URL:
        _logger.critical("DATABASE_URL is not set; cannot start. Copy .env.example to .env and configure it.")
        raise ValueError("DATABASE_URL environment variable is not set. Copy .env.example to .env and configure it.")

    EVENT_NAME = os.getenv('EVENT_NAME', 'YPE Summit')

    # Admin session. Both empty = admin login disabled.
    ADMIN_PASSWORD_HASH = os.getenv('ADMIN_PASSWORD_HASH', '')
    SESSION_SECRET_KEY = os.getenv('SESSION_SECRET_KEY', '')
    SESSION_ALGORITHM = os.getenv('SESSION_ALGORITHM', 'HS256')
    SESSION_TTL_MINUTES = int(os.getenv('SESSION_TTL_MINUTES', '480'))

    # Static content roots (one sub-directory per category)
    DOCUMENTS_DIR = Path(os.getenv('DOCUMENTS_DIR', str(_PROJECT_ROOT / 'public' / 'documents')))
    GALLERY_DIR = Path(os.getenv('GALLERY_DIR', str(_PROJECT_ROOT / 'public' / 'images' / 'gallery')))

    # HTTP API
    CORS_ORIGINS = _split_csv(os.getenv('CORS_ORIGINS', ''))
    API_HOST = os.getenv('API_HOST', '0.0.0.0')
    API_PORT = int(os.getenv('API_PORT', '8000'))

    # Logging. A relative LOG_DIR resolves against the working directory, so an
    # installed package never writes into site-packages.
    LOG_DIR = Path(os.getenv('LOG_DIR', 'logs'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


# Singleton instance
config = Config()
