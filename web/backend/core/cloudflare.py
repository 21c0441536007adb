"""Cloudflare REST API gateway.

Every call reads the stored credential record, sends one bearer-authenticated
request and returns the ``result`` payload. Nothing is retried or cached.
"""
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from shared.config import get_shared_settings
from shared.logger import log_api_call, log_api_error
from web.backend.core.credentials import CredentialRecord, CredentialStore
from web.backend.core.email_routing import build_full_email
from web.backend.core.errors import ConfigMissingError, RemoteAPIError

logger = logging.getLogger(__name__)

ZONES_PAGE_SIZE = 50
RULE_NAME = "Auto-generated via Email Manager"

# Status returned to the dashboard when Cloudflare could not be reached at all
UNREACHABLE_STATUS = 502


def _remote_message(resp: httpx.Response) -> str:
    """Pick the most useful error message out of a failed Cloudflare response."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        if body.get("message"):
            return str(body["message"])
        errors = body.get("errors") or []
        if errors and isinstance(errors[0], dict) and errors[0].get("message"):
            return str(errors[0]["message"])
    return resp.reason_phrase or f"HTTP {resp.status_code}"


def _is_success(resp: httpx.Response, body: Any) -> bool:
    if resp.is_error:
        return False
    return not (isinstance(body, dict) and body.get("success") is False)


def _rejected(message: str, resp: httpx.Response) -> RemoteAPIError:
    """Error for a failed Cloudflare response, keeping its HTTP status.

    A 2xx answer whose body reports ``success: false`` maps to the default 500.
    """
    return RemoteAPIError(
        message,
        status_code=resp.status_code if resp.is_error else None,
        remote_status=resp.status_code,
    )


class CloudflareGateway:
    """Thin async client over the Cloudflare v4 API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: CredentialStore,
        base_url: Optional[str] = None,
    ):
        self._client = client
        self._credentials = credentials
        self._base_url = (base_url or get_shared_settings().cloudflare_api_base_url).rstrip("/")

    async def require_config(self) -> CredentialRecord:
        config = await self._credentials.get()
        if config is None:
            raise ConfigMissingError()
        return config

    async def _request(
        self,
        config: CredentialRecord,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {config.api_token}",
            "Content-Type": "application/json",
        }
        started = time.monotonic()
        try:
            resp = await self._client.request(
                method, f"{self._base_url}{path}", headers=headers, params=params, json=json
            )
        except httpx.HTTPError as e:
            log_api_error(method, path, e)
            raise RemoteAPIError(
                f"Cloudflare API unreachable: {e}", status_code=UNREACHABLE_STATUS
            ) from e
        log_api_call(method, path, resp.status_code, (time.monotonic() - started) * 1000)
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    async def list_zones(self) -> List[Dict[str, Any]]:
        """Active zones of the account, first page of up to 50."""
        config = await self.require_config()
        resp = await self._request(
            config, "GET", "/zones", params={"status": "active", "per_page": ZONES_PAGE_SIZE}
        )
        body = self._json(resp)
        if not _is_success(resp, body):
            raise _rejected(f"Cloudflare API error: {resp.status_code} {_remote_message(resp)}", resp)
        return (body or {}).get("result") or []

    async def get_zone(self, zone_id: str, config: Optional[CredentialRecord] = None) -> Dict[str, Any]:
        config = config or await self.require_config()
        resp = await self._request(config, "GET", f"/zones/{zone_id}")
        body = self._json(resp)
        if not _is_success(resp, body):
            raise _rejected(
                f"Failed to get zone details: {resp.status_code} {resp.reason_phrase}".rstrip(), resp
            )
        zone = (body or {}).get("result")
        if not isinstance(zone, dict) or not zone.get("name"):
            raise RemoteAPIError(
                f"Failed to get zone details: zone {zone_id} has no name",
                remote_status=resp.status_code,
            )
        return zone

    async def create_routing_rule(
        self, zone_id: str, alias_part: str, destination_email: str
    ) -> Dict[str, str]:
        """Create an enabled rule forwarding ``alias_part@<zone>`` to ``destination_email``.

        Returns ``rule_id``, ``zone_name`` and ``full_email``.
        """
        config = await self.require_config()
        zone = await self.get_zone(zone_id, config)
        zone_name = zone["name"]
        full_email = build_full_email(alias_part, zone_name)

        payload = {
            "enabled": True,
            "name": RULE_NAME,
            "matchers": [{"type": "literal", "field": "to", "value": full_email}],
            "actions": [{"type": "forward", "value": [destination_email]}],
        }
        resp = await self._request(
            config, "POST", f"/zones/{zone_id}/email/routing/rules", json=payload
        )
        body = self._json(resp)
        if not _is_success(resp, body):
            raise _rejected(f"Failed to create routing rule: {_remote_message(resp)}", resp)

        rule_id = ((body or {}).get("result") or {}).get("id")
        if not rule_id:
            raise RemoteAPIError("Failed to create routing rule: response carried no rule id")

        logger.info("Routing rule %s created for %s on zone %s", rule_id, full_email, zone_name)
        return {"rule_id": rule_id, "zone_name": zone_name, "full_email": full_email}

    async def delete_routing_rule(
        self, zone_id: str, rule_id: str, config: Optional[CredentialRecord] = None
    ) -> None:
        config = config or await self.require_config()
        resp = await self._request(
            config, "DELETE", f"/zones/{zone_id}/email/routing/rules/{rule_id}"
        )
        body = self._json(resp)
        if not _is_success(resp, body):
            raise _rejected(f"Failed to delete routing rule: {_remote_message(resp)}", resp)
        logger.info("Routing rule %s deleted from zone %s", rule_id, zone_id)
