"""Email routing endpoints.

Cloudflare is always changed first; the local table only mirrors rules
Cloudflare has accepted or removed.
"""
import logging

from fastapi import APIRouter, Depends, Request

from web.backend.api.deps import (
    AdminUser,
    get_current_admin,
    get_gateway,
    get_routing_store,
)
from web.backend.core.cloudflare import CloudflareGateway
from web.backend.core.email_routing import RoutingRecord, RoutingRecordStore
from web.backend.core.errors import NotFoundError, StorageError
from web.backend.core.rate_limit import limiter, RATE_MUTATIONS
from web.backend.schemas.common import SuccessResponse
from web.backend.schemas.email_routing import (
    EmailRoutingCreate,
    EmailRoutingCreateResponse,
    EmailRoutingDelete,
    EmailRoutingItem,
    EmailRoutingListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=EmailRoutingListResponse)
async def list_email_routing(
    admin: AdminUser = Depends(get_current_admin),
    store: RoutingRecordStore = Depends(get_routing_store),
):
    """Routing rules created through the dashboard, newest first."""
    records = await store.list()
    return EmailRoutingListResponse(
        emails=[EmailRoutingItem(**r.to_dict()) for r in records],
    )


@router.post("", response_model=EmailRoutingCreateResponse)
@limiter.limit(RATE_MUTATIONS)
async def create_email_routing(
    request: Request,
    data: EmailRoutingCreate,
    admin: AdminUser = Depends(get_current_admin),
    gateway: CloudflareGateway = Depends(get_gateway),
    store: RoutingRecordStore = Depends(get_routing_store),
):
    """Create the Cloudflare rule, then record it locally."""
    created = await gateway.create_routing_rule(
        data.zoneId, data.aliasPart, data.destinationEmail
    )

    try:
        record = await store.create(RoutingRecord(
            zone_id=data.zoneId,
            zone_name=created["zone_name"],
            alias_part=data.aliasPart,
            full_email=created["full_email"],
            destination=data.destinationEmail,
            rule_id=created["rule_id"],
            is_active=True,
        ))
    except StorageError:
        logger.error(
            "Rule %s exists on Cloudflare (zone %s) but was not recorded locally",
            created["rule_id"], data.zoneId,
        )
        raise

    logger.info("Email routing %s created by '%s'", record.full_email, admin.username)
    return EmailRoutingCreateResponse(email=EmailRoutingItem(**record.to_dict()))


@router.delete("/{record_id}", response_model=SuccessResponse)
@limiter.limit(RATE_MUTATIONS)
async def delete_email_routing(
    request: Request,
    record_id: str,
    data: EmailRoutingDelete,
    admin: AdminUser = Depends(get_current_admin),
    gateway: CloudflareGateway = Depends(get_gateway),
    store: RoutingRecordStore = Depends(get_routing_store),
):
    """Delete the Cloudflare rule, then the local record."""
    config = await gateway.require_config()
    record = await store.get(record_id)
    if record is None:
        raise NotFoundError("Email routing not found")

    await gateway.delete_routing_rule(record.zone_id, data.ruleId, config)

    try:
        await store.delete_by_id(record_id)
    except StorageError:
        logger.error(
            "Rule %s was deleted on Cloudflare but local record %s remains",
            data.ruleId, record_id,
        )
        raise

    logger.info("Email routing %s deleted by '%s'", record.full_email, admin.username)
    return SuccessResponse(message="Email routing deleted successfully")
