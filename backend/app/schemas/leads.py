import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

LeadStatus = Literal["new", "contacted", "qualified", "converted", "lost"]


class LeadCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=32)
    email: str | None = Field(None, max_length=255)
    units: str | None = Field(None, max_length=100)
    source: str = Field("Manual", max_length=100)


class LeadUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, min_length=1, max_length=32)
    email: str | None = Field(None, max_length=255)
    units: str | None = Field(None, max_length=100)
    status: LeadStatus | None = None
    next_follow_up: datetime | None = None
    notes: list[str] | None = None


class LeadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    phone: str
    email: str | None
    units: str | None
    source: str
    status: str
    notes: list[str]
    date_added: datetime
    last_contact: datetime | None
    next_follow_up: datetime | None


class LeadListResponse(BaseModel):
    items: list[LeadResponse]
    total: int


class LeadIngestResponse(BaseModel):
    success: bool = True
    message: str
    duplicate: bool = False
    lead: LeadResponse | None = None
