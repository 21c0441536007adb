"""Shared test fixtures for backend tests.

Provides:
- FastAPI test app with dependency overrides
- httpx AsyncClient for API testing
- In-memory credential and routing stores
- A fake Cloudflare API served through httpx.MockTransport
"""
import json
import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import httpx
import pytest
import pytest_asyncio

# Ensure project root is on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Set required environment variables BEFORE any app imports
os.environ.setdefault("WEB_SECRET_KEY", "test-secret-key-for-unit-tests-only")
os.environ.setdefault("WEB_ADMIN_LOGIN", "admin")
os.environ.setdefault("WEB_ADMIN_PASSWORD", "correct-horse")
os.environ.setdefault("WEB_DEBUG", "true")
os.environ.setdefault("CLOUDFLARE_API_BASE_URL", "https://cf.test/client/v4")

# Clear the lru_cache so test env vars take effect
from shared.config import get_shared_settings
from web.backend.core.config import get_web_settings
get_shared_settings.cache_clear()
get_web_settings.cache_clear()

from httpx import ASGITransport, AsyncClient

from web.backend.api.deps import (
    AdminUser,
    get_credential_store,
    get_current_admin,
    get_http_client,
    get_routing_store,
)
from web.backend.core.credentials import (
    SECRET_FIELDS,
    CredentialRecord,
    normalize_destination_emails,
)
from web.backend.core.email_routing import RoutingRecord
from web.backend.core.errors import NotFoundError, ValidationError
from web.backend.core.rate_limit import limiter
from web.backend.main import create_app

CF_BASE = "https://cf.test/client/v4"

VALID_CONFIG = {
    "apiToken": "cf-token-abcd1234",
    "accountId": "account-5678",
    "d1Database": "d1-db-9012",
    "workerApi": "worker-token-3456",
    "kvStorage": "kv-namespace-7890",
    "destinationEmails": ["ops@example.com"],
}


# ── In-memory stores ─────────────────────────────────────────

class InMemoryCredentialStore:
    """Mirrors CredentialStore semantics without a database."""

    def __init__(self):
        self.record: Optional[CredentialRecord] = None
        self.writes = 0

    async def get(self) -> Optional[CredentialRecord]:
        return self.record

    async def upsert(self, fields: Mapping[str, Any]) -> CredentialRecord:
        missing = [k for k in SECRET_FIELDS if not (fields.get(k) or "").strip()]
        if missing:
            raise ValidationError("Missing required fields: " + ", ".join(missing))
        emails = normalize_destination_emails(fields.get("destinationEmails"))
        now = datetime.now(timezone.utc)
        self.record = CredentialRecord(
            id=1,
            destination_emails=emails,
            created_at=self.record.created_at if self.record else now,
            updated_at=now,
            **{column: fields[key].strip() for key, column in SECRET_FIELDS.items()},
        )
        self.writes += 1
        return self.record


class InMemoryRoutingStore:
    """Mirrors RoutingRecordStore semantics without a database."""

    def __init__(self):
        self.records: Dict[str, RoutingRecord] = {}
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    async def list(self) -> List[RoutingRecord]:
        return sorted(self.records.values(), key=lambda r: r.created_at, reverse=True)

    async def get(self, record_id: str) -> Optional[RoutingRecord]:
        return self.records.get(record_id)

    async def create(self, record: RoutingRecord) -> RoutingRecord:
        self._clock += timedelta(seconds=1)
        record.id = str(uuid.uuid4())
        record.created_at = self._clock
        record.updated_at = self._clock
        self.records[record.id] = record
        return record

    async def delete_by_id(self, record_id: str) -> None:
        if record_id not in self.records:
            raise NotFoundError("Email routing not found")
        del self.records[record_id]


# ── Fake Cloudflare API ──────────────────────────────────────

class FakeCloudflare:
    """Minimal Cloudflare v4 API used through httpx.MockTransport."""

    def __init__(self):
        self.zones = {
            "zone-1": {"id": "zone-1", "name": "example.com", "status": "active"},
            "zone-2": {"id": "zone-2", "name": "example.org", "status": "active"},
        }
        self.rules: Dict[str, dict] = {}
        self.requests: List[httpx.Request] = []
        self.fail_create: Optional[httpx.Response] = None
        self.fail_delete: Optional[httpx.Response] = None
        self.fail_zones: Optional[httpx.Response] = None
        self.unreachable = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)

        path = request.url.path.removeprefix("/client/v4")
        parts = [p for p in path.split("/") if p]

        if parts == ["zones"] and request.method == "GET":
            if self.fail_zones is not None:
                return self.fail_zones
            return httpx.Response(200, json={"success": True, "result": list(self.zones.values())})

        if len(parts) == 2 and parts[0] == "zones" and request.method == "GET":
            zone = self.zones.get(parts[1])
            if zone is None:
                return httpx.Response(404, json={"success": False, "errors": [{"code": 1001, "message": "Invalid zone"}]})
            return httpx.Response(200, json={"success": True, "result": zone})

        if parts[-3:] == ["email", "routing", "rules"] and request.method == "POST":
            if self.fail_create is not None:
                return self.fail_create
            rule_id = f"rule-{len(self.rules) + 1}"
            self.rules[rule_id] = {"id": rule_id, "zone": parts[1], **json.loads(request.content)}
            return httpx.Response(200, json={"success": True, "result": {"id": rule_id}})

        if parts[-4:-1] == ["email", "routing", "rules"] and request.method == "DELETE":
            if self.fail_delete is not None:
                return self.fail_delete
            rule_id = parts[-1]
            if self.rules.pop(rule_id, None) is None:
                return httpx.Response(404, json={"success": False, "errors": [{"code": 2020, "message": "Rule not found"}]})
            return httpx.Response(200, json={"success": True, "result": {"id": rule_id}})

        return httpx.Response(404, json={"success": False, "errors": [{"message": "No route"}]})


# ── Fixtures ─────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _disable_rate_limit():
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture()
def credential_store():
    return InMemoryCredentialStore()


@pytest.fixture()
def routing_store():
    return InMemoryRoutingStore()


@pytest.fixture()
def cloudflare():
    return FakeCloudflare()


@pytest_asyncio.fixture()
async def http_client(cloudflare):
    async with httpx.AsyncClient(transport=httpx.MockTransport(cloudflare.handler)) as c:
        yield c


@pytest.fixture()
def configured(credential_store):
    """Credential store pre-populated with VALID_CONFIG."""
    credential_store.record = CredentialRecord(
        id=1,
        destination_emails=list(VALID_CONFIG["destinationEmails"]),
        **{column: VALID_CONFIG[key] for key, column in SECRET_FIELDS.items()},
    )
    return credential_store


@pytest.fixture()
def app(credential_store, routing_store, http_client):
    """Create a fresh FastAPI app with in-memory stores and fake Cloudflare."""
    get_web_settings.cache_clear()
    _app = create_app()
    _app.dependency_overrides[get_credential_store] = lambda: credential_store
    _app.dependency_overrides[get_routing_store] = lambda: routing_store
    _app.dependency_overrides[get_http_client] = lambda: http_client
    yield _app
    _app.dependency_overrides.clear()


@pytest.fixture()
def admin():
    return AdminUser(username="admin")


@pytest_asyncio.fixture()
async def client(app, admin):
    """Async HTTP client authenticated as admin."""
    app.dependency_overrides[get_current_admin] = lambda: admin
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def anon_client(app):
    """Unauthenticated HTTP client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
