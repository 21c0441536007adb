"""API dependencies for web panel."""
import logging
from dataclasses import dataclass

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from shared.database import DatabaseService
from web.backend.core.cloudflare import CloudflareGateway
from web.backend.core.config import get_web_settings
from web.backend.core.credentials import CredentialStore
from web.backend.core.email_routing import RoutingRecordStore
from web.backend.core.security import decode_token

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


@dataclass
class AdminUser:
    """Authenticated admin user."""

    username: str = "admin"


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AdminUser:
    """Dependency for verifying admin authentication."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    username = payload.get("sub", "")
    settings = get_web_settings()
    if not settings.admin_login or username.lower() != settings.admin_login.lower():
        logger.warning("Access denied for '%s': account not configured", username)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin account disabled",
        )

    return AdminUser(username=username)


def get_db(request: Request) -> DatabaseService:
    """Database handle created by the application lifespan."""
    return request.app.state.db


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_credential_store(db: DatabaseService = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_routing_store(db: DatabaseService = Depends(get_db)) -> RoutingRecordStore:
    return RoutingRecordStore(db)


def get_gateway(
    client: httpx.AsyncClient = Depends(get_http_client),
    credentials: CredentialStore = Depends(get_credential_store),
) -> CloudflareGateway:
    return CloudflareGateway(client, credentials)
