"""Common schemas for web panel API."""
from typing import Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error response."""

    success: bool = False
    error: str
    code: Optional[str] = None


class SuccessResponse(BaseModel):
    """Success response."""

    success: bool = True
    message: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    database: bool
