"""Tests for web.backend.core.errors — error classes and JSON rendering."""
import json

import pytest
from fastapi.exceptions import RequestValidationError

from web.backend.core.errors import (
    ConfigMissingError,
    E,
    NotFoundError,
    RemoteAPIError,
    StorageError,
    ValidationError,
    dashboard_error_handler,
    request_validation_handler,
)


class TestErrorClasses:

    @pytest.mark.parametrize("cls,status,code", [
        (ValidationError, 400, E.VALIDATION_ERROR),
        (ConfigMissingError, 400, E.CONFIG_MISSING),
        (RemoteAPIError, 500, E.REMOTE_API_ERROR),
        (NotFoundError, 404, E.NOT_FOUND),
        (StorageError, 500, E.STORAGE_ERROR),
    ])
    def test_status_and_code(self, cls, status, code):
        err = cls("boom")
        assert err.status_code == status
        assert err.code == code
        assert err.message == "boom"

    def test_default_message(self):
        assert "not set up" in ConfigMissingError().message

    def test_status_override_is_per_instance(self):
        err = RemoteAPIError("unreachable", status_code=502)
        assert err.status_code == 502
        assert RemoteAPIError("other").status_code == 500

    def test_remote_status_kept(self):
        err = RemoteAPIError("Forbidden", status_code=403, remote_status=403)
        assert err.remote_status == 403
        assert RemoteAPIError("other").remote_status is None


class TestHandlers:

    async def test_dashboard_error_body(self):
        resp = await dashboard_error_handler(None, NotFoundError("Email routing not found"))
        assert resp.status_code == 404
        assert json.loads(resp.body) == {
            "success": False,
            "error": "Email routing not found",
            "code": "NOT_FOUND",
        }

    async def test_missing_fields_listed(self):
        exc = RequestValidationError([
            {"type": "missing", "loc": ("body", "zoneId"), "msg": "Field required"},
            {"type": "string_too_short", "loc": ("body", "aliasPart"), "msg": "too short"},
        ])
        resp = await request_validation_handler(None, exc)
        body = json.loads(resp.body)
        assert resp.status_code == 400
        assert body["error"] == "Missing required fields: zoneId, aliasPart"
        assert body["code"] == "VALIDATION_ERROR"

    async def test_null_counts_as_missing(self):
        exc = RequestValidationError([
            {"type": "string_type", "loc": ("body", "ruleId"), "msg": "Input should be a valid string", "input": None},
        ])
        resp = await request_validation_handler(None, exc)
        assert json.loads(resp.body)["error"] == "Missing required fields: ruleId"

    async def test_missing_body(self):
        exc = RequestValidationError([{"type": "missing", "loc": ("body",), "msg": "Field required"}])
        resp = await request_validation_handler(None, exc)
        assert json.loads(resp.body)["error"] == "Missing request body"

    async def test_other_errors_use_first_message(self):
        exc = RequestValidationError([
            {"type": "list_type", "loc": ("body", "destinationEmails"), "msg": "Input should be a valid list"},
        ])
        resp = await request_validation_handler(None, exc)
        assert json.loads(resp.body)["error"] == "Input should be a valid list"
