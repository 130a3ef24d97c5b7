"""
Admin Session
The admin password is checked server-side against a bcrypt hash and, on
success, exchanged for a signed, expiring bearer token. Every admin route
depends on require_admin, which verifies that token.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from summitdesk.config import config
from summitdesk.models import Result, FAILURE_UNAUTHORIZED

logger = logging.getLogger(__name__)

TOKEN_TYPE = 'admin_session'
ADMIN_SUBJECT = 'admin'

# Missing credentials are reported as 401 by require_admin, not 403 by HTTPBearer
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """bcrypt hash suitable for ADMIN_PASSWORD_HASH"""
    # bcrypt only looks at the first 72 bytes
    return bcrypt.hashpw(password.encode('utf-8')[:72], bcrypt.gensalt()).decode('utf-8')


def verify_admin_password(password: str) -> bool:
    if not config.ADMIN_PASSWORD_HASH:
        logger.warning("Admin login attempted but ADMIN_PASSWORD_HASH is not set")
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8')[:72], config.ADMIN_PASSWORD_HASH.encode('utf-8'))
    except ValueError as e:
        logger.error(f"ADMIN_PASSWORD_HASH is not a valid bcrypt hash: {e}")
        return False


def create_session_token(expires_delta: Optional[timedelta] = None) -> str:
    if not config.SESSION_SECRET_KEY:
        raise RuntimeError("SESSION_SECRET_KEY is not set")
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=config.SESSION_TTL_MINUTES))
    claims = {'sub': ADMIN_SUBJECT, 'type': TOKEN_TYPE, 'iat': now, 'exp': expire}
    return jwt.encode(claims, config.SESSION_SECRET_KEY, algorithm=config.SESSION_ALGORITHM)


def decode_session_token(token: str) -> Optional[Dict[str, Any]]:
    """Claims of a valid, unexpired admin token; None otherwise."""
    if not config.SESSION_SECRET_KEY:
        return None
    try:
        claims = jwt.decode(token, config.SESSION_SECRET_KEY, algorithms=[config.SESSION_ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected admin token: {e}")
        return None
    if claims.get('type') != TOKEN_TYPE:
        logger.info(f"Rejected token of type {claims.get('type')!r}")
        return None
    return claims


def login(password: str) -> Result:
    """Exchange the admin password for a session token."""
    if not verify_admin_password(password):
        logger.warning("Admin login failed")
        return Result.fail('Invalid password', FAILURE_UNAUTHORIZED)
    try:
        token = create_session_token()
    except RuntimeError as e:
        logger.error(f"Cannot issue admin session: {e}")
        return Result.fail('Admin login is not configured.')

    logger.info("Admin session issued")
    return Result.ok(
        {'token': token, 'token_type': 'bearer', 'expires_in': config.SESSION_TTL_MINUTES * 60},
        'Login successful',
    )


def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Dict[str, Any]:
    """FastAPI dependency guarding every admin route."""
    claims = decode_session_token(credentials.credentials) if credentials else None
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Admin authentication required',
            headers={'WWW-Authenticate': 'Bearer'},
        )
    return claims
