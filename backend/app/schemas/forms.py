import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.services.form_engine import Block, Media, Question

FormStatus = Literal["draft", "active", "archived"]


# ---------------------------------------------------------------------------
# Form CRUD schemas
# ---------------------------------------------------------------------------


class FormCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    blocks: list[Block] = Field(..., min_length=1)
    questions: list[Question] = Field(..., min_length=1)
    media: Media | None = None


class FormUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    blocks: list[Block] | None = None
    questions: list[Question] | None = None
    media: Media | None = None
    status: FormStatus | None = None


class FormResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None
    blocks: list[dict[str, Any]]
    questions: list[dict[str, Any]]
    media: dict[str, Any] | None
    status: FormStatus
    responses_count: int = 0
    last_response_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class FormListResponse(BaseModel):
    items: list[FormResponse]
    total: int
    page: int
    page_size: int


class PublicFormResponse(BaseModel):
    """Respondent-facing definition - no counters or timestamps."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None
    blocks: list[dict[str, Any]]
    questions: list[dict[str, Any]]
    media: dict[str, Any] | None


class ShareLinks(BaseModel):
    url: str
    short_url: str


class FormAnalytics(BaseModel):
    form_id: uuid.UUID
    views: int = 0
    starts: int = 0
    completes: int = 0
    abandons: int = 0
    recent_submissions: int = 0
    completion_rate: float = Field(0.0, description="completes / starts, 0 when nothing started")


# ---------------------------------------------------------------------------
# Submission schemas
# ---------------------------------------------------------------------------


class SubmissionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    form_id: uuid.UUID
    session_id: uuid.UUID | None
    answers: dict[str, Any]
    contact_info: dict[str, str]
    lead_score: int
    submitted_at: datetime


class SubmissionListResponse(BaseModel):
    items: list[SubmissionSchema]
    total: int
    page: int
    page_size: int
