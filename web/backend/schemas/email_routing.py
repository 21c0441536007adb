"""Schemas for email routing endpoints."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EmailRoutingCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    zoneId: str = Field(..., min_length=1)
    aliasPart: str = Field(..., min_length=1)
    destinationEmail: str = Field(..., min_length=1)


class EmailRoutingDelete(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    ruleId: str = Field(..., min_length=1)


class EmailRoutingItem(BaseModel):
    id: str
    zoneId: str
    zoneName: str
    aliasPart: str
    fullEmail: str
    destination: str
    ruleId: str
    isActive: bool = True
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class EmailRoutingListResponse(BaseModel):
    success: bool = True
    emails: List[EmailRoutingItem]


class EmailRoutingCreateResponse(BaseModel):
    success: bool = True
    email: EmailRoutingItem
