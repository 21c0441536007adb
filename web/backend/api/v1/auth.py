"""Auth API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from web.backend.api.deps import AdminUser, get_current_admin
from web.backend.core.config import get_web_settings
from web.backend.core.rate_limit import limiter, RATE_AUTH
from web.backend.core.security import create_access_token, verify_admin_password
from web.backend.schemas.auth import AdminInfo, LoginRequest, TokenResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_client_ip(request: Request) -> str:
    """Extract client IP, respecting X-Forwarded-For behind a reverse proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@router.post("/login", response_model=TokenResponse)
@limiter.limit(RATE_AUTH)
async def password_login(request: Request, data: LoginRequest):
    """
    Authenticate with username and password.

    WEB_ADMIN_LOGIN / WEB_ADMIN_PASSWORD must be configured in .env.
    """
    settings = get_web_settings()
    client_ip = _get_client_ip(request)

    if not settings.password_auth_enabled:
        raise HTTPException(
            status_code=403,
            detail="Password authentication is not configured",
        )

    if not verify_admin_password(data.username, data.password):
        logger.warning("Password login failed for user '%s' from %s", data.username, client_ip)
        raise HTTPException(
            status_code=401,
            detail="Invalid username or password",
        )

    logger.info("Password login successful for user '%s' from %s", data.username, client_ip)
    return TokenResponse(
        access_token=create_access_token(data.username),
        expires_in=settings.jwt_expire_minutes * 60,
    )


@router.get("/me", response_model=AdminInfo)
async def get_current_user(admin: AdminUser = Depends(get_current_admin)):
    """Get current admin info."""
    return AdminInfo(username=admin.username)
