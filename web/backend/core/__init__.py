"""Core module for web panel."""
from web.backend.core.config import get_web_settings, WebSettings
from web.backend.core.security import (
    create_access_token,
    decode_token,
    verify_admin_password,
)

__all__ = [
    "get_web_settings",
    "WebSettings",
    "create_access_token",
    "decode_token",
    "verify_admin_password",
]
