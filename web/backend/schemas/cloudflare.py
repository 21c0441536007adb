"""Schemas for the Cloudflare credential and zone endpoints."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConfigSaveRequest(BaseModel):
    """Full replacement of the stored Cloudflare credentials.

    Destination emails are normalised and validated by the credential store.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    apiToken: str = Field(..., min_length=1)
    accountId: str = Field(..., min_length=1)
    d1Database: str = Field(..., min_length=1)
    workerApi: str = Field(..., min_length=1)
    kvStorage: str = Field(..., min_length=1)
    destinationEmails: Optional[List[str]] = None


class ZoneListResponse(BaseModel):
    success: bool = True
    zones: List[Dict[str, Any]]
