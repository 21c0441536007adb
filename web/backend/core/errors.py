"""Domain errors and their JSON rendering.

Usage:
    from web.backend.core.errors import ConfigMissingError, RemoteAPIError

    raise ConfigMissingError()
    raise RemoteAPIError("Failed to delete routing rule: Rule not found", status_code=404)

Every error is rendered by ``dashboard_error_handler`` as
``{"success": false, "error": "<message>", "code": "<ERROR_CODE>"}``.
"""
from enum import Enum
from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ErrorCode(str, Enum):
    """All API error codes. Frontend maps these to i18n translations."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIG_MISSING = "CONFIG_MISSING"
    REMOTE_API_ERROR = "REMOTE_API_ERROR"
    NOT_FOUND = "NOT_FOUND"
    STORAGE_ERROR = "STORAGE_ERROR"


# Shorthand alias
E = ErrorCode

_DEFAULT_MESSAGES: dict[str, str] = {
    E.VALIDATION_ERROR: "Invalid request",
    E.CONFIG_MISSING: (
        "Cloudflare API config is not set up. "
        "Configure it in the dashboard first."
    ),
    E.REMOTE_API_ERROR: "Cloudflare API error",
    E.NOT_FOUND: "Not found",
    E.STORAGE_ERROR: "Database error",
}


class DashboardError(Exception):
    """Base class for errors surfaced to the dashboard as JSON."""

    status_code: int = 500
    code: ErrorCode = E.STORAGE_ERROR

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or _DEFAULT_MESSAGES.get(self.code, self.code.value)
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(DashboardError):
    """Malformed or missing input."""

    status_code = 400
    code = E.VALIDATION_ERROR


class ConfigMissingError(DashboardError):
    """No Cloudflare credential record is stored."""

    status_code = 400
    code = E.CONFIG_MISSING


class RemoteAPIError(DashboardError):
    """Cloudflare rejected the call or could not be reached.

    ``remote_status`` is the HTTP status Cloudflare answered with, or None
    when no response was received.
    """

    status_code = 500
    code = E.REMOTE_API_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        remote_status: Optional[int] = None,
    ):
        super().__init__(message, status_code)
        self.remote_status = remote_status


class NotFoundError(DashboardError):
    """Local record absent."""

    status_code = 404
    code = E.NOT_FOUND


class StorageError(DashboardError):
    """Local persistence failure."""

    status_code = 500
    code = E.STORAGE_ERROR


def error_body(message: str, code: ErrorCode) -> dict:
    return {"success": False, "error": message, "code": code.value}


async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.code))


def _describe_validation_errors(errors: list) -> str:
    """Build a single human-readable message from pydantic error entries."""
    missing = []
    for err in errors:
        loc = [part for part in err.get("loc", ()) if part != "body"]
        is_empty = err.get("type") in ("missing", "string_too_short") or (
            err.get("type") == "string_type" and err.get("input") is None
        )
        if is_empty and loc:
            missing.append(str(loc[-1]))
    if missing:
        return "Missing required fields: " + ", ".join(dict.fromkeys(missing))
    if errors and errors[0].get("type") == "missing":
        return "Missing request body"
    if errors:
        msg = str(errors[0].get("msg", "Invalid request"))
        return msg.removeprefix("Value error, ")
    return _DEFAULT_MESSAGES[E.VALIDATION_ERROR]


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI body validation failures in the dashboard error shape (400)."""
    message = _describe_validation_errors(exc.errors())
    return JSONResponse(status_code=400, content=error_body(message, E.VALIDATION_ERROR))
