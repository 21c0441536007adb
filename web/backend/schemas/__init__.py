"""Schemas for web panel API."""
from web.backend.schemas.common import (
    ErrorResponse,
    SuccessResponse,
    HealthResponse,
)
from web.backend.schemas.auth import (
    LoginRequest,
    TokenResponse,
    AdminInfo,
)
from web.backend.schemas.cloudflare import (
    ConfigSaveRequest,
    ZoneListResponse,
)
from web.backend.schemas.email_routing import (
    EmailRoutingCreate,
    EmailRoutingDelete,
    EmailRoutingItem,
    EmailRoutingListResponse,
    EmailRoutingCreateResponse,
)

__all__ = [
    "ErrorResponse",
    "SuccessResponse",
    "HealthResponse",
    "LoginRequest",
    "TokenResponse",
    "AdminInfo",
    "ConfigSaveRequest",
    "ZoneListResponse",
    "EmailRoutingCreate",
    "EmailRoutingDelete",
    "EmailRoutingItem",
    "EmailRoutingListResponse",
    "EmailRoutingCreateResponse",
]
