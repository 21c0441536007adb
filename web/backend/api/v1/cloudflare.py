"""Cloudflare credential and zone endpoints."""
import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from web.backend.api.deps import (
    AdminUser,
    get_credential_store,
    get_current_admin,
    get_gateway,
)
from web.backend.core.cloudflare import CloudflareGateway
from web.backend.core.credentials import CredentialStore
from web.backend.core.errors import DashboardError, error_body
from web.backend.core.rate_limit import limiter, RATE_MUTATIONS
from web.backend.schemas.cloudflare import ConfigSaveRequest, ZoneListResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/config")
async def get_config(
    reveal: bool = Query(False, description="Include unmasked values for the edit form"),
    admin: AdminUser = Depends(get_current_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    """Stored Cloudflare credentials, masked unless ``reveal`` is requested."""
    config = await store.get()
    if config is None:
        return {"success": True, "config": None, "message": "No configuration yet"}

    data = config.masked()
    if reveal:
        logger.info("Unmasked Cloudflare config revealed to '%s'", admin.username)
        data["_full"] = config.full()
    return {"success": True, "config": data}


@router.api_route("/config", methods=["POST", "PUT"])
@limiter.limit(RATE_MUTATIONS)
async def save_config(
    request: Request,
    data: ConfigSaveRequest,
    admin: AdminUser = Depends(get_current_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    """Create or fully replace the Cloudflare credentials."""
    config = await store.upsert(data.model_dump())
    logger.info("Cloudflare config saved by '%s'", admin.username)
    return {
        "success": True,
        "message": "Configuration saved",
        "config": config.masked(),
    }


@router.get("/zones", response_model=ZoneListResponse)
async def list_zones(
    admin: AdminUser = Depends(get_current_admin),
    gateway: CloudflareGateway = Depends(get_gateway),
):
    """Active zones of the configured Cloudflare account."""
    try:
        zones = await gateway.list_zones()
    except DashboardError as e:
        logger.warning("Zone listing failed: %s", e.message)
        body = error_body(e.message, e.code)
        body["zones"] = []
        return JSONResponse(status_code=e.status_code, content=body)
    return ZoneListResponse(zones=zones)
