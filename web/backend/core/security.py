"""Security utilities for web panel."""
import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

import bcrypt
from jose import jwt, JWTError

from web.backend.core.config import get_web_settings

logger = logging.getLogger(__name__)


def verify_admin_password(username: str, password: str) -> bool:
    """
    Verify admin credentials against WEB_ADMIN_LOGIN / WEB_ADMIN_PASSWORD.

    The stored password may be plain text or a bcrypt hash.

    Returns:
        True if credentials match, False otherwise.
    """
    settings = get_web_settings()

    if not settings.admin_login or not settings.admin_password:
        return False

    # Username comparison (case-insensitive)
    if username.lower() != settings.admin_login.lower():
        return False

    stored = settings.admin_password

    if stored.startswith("$2b$") or stored.startswith("$2a$"):
        try:
            return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
        except ValueError as e:
            logger.error("bcrypt verification failed: %s", e)
            return False

    # Plain-text comparison using constant-time function
    return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))


def create_access_token(username: str) -> str:
    """
    Create JWT access token.

    Args:
        username: Admin username, stored as the token subject

    Returns:
        Encoded JWT token
    """
    settings = get_web_settings()
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.jwt_expire_minutes)

    payload = {
        "sub": username,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp()),
        "type": "access",
    }

    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate JWT token.

    Returns:
        Token payload if valid, None otherwise
    """
    settings = get_web_settings()

    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except JWTError as e:
        logger.debug("Token decode error: %s", e)
        return None
