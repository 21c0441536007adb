"""Auth schemas for web panel API."""
from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Username/password login request."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=200)


class TokenResponse(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class AdminInfo(BaseModel):
    """Current admin info."""

    username: str
