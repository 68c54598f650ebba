import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.schemas.forms import SubmissionSchema


class AnswerInput(BaseModel):
    """One respondent input event. For checkbox questions value toggles one option."""

    question_id: str = Field(..., min_length=1)
    value: Any = None


class BlockView(BaseModel):
    id: str
    title: str


class SessionView(BaseModel):
    id: uuid.UUID
    form_id: uuid.UUID
    block_index: int
    question_index: int | None = None
    block: BlockView | None = None
    questions: list[dict[str, Any]] = Field(default_factory=list)
    answers: dict[str, Any] = Field(default_factory=dict)
    can_advance: bool = False
    missing_required: list[str] = Field(default_factory=list)
    is_first_block: bool = False
    is_last_block: bool = False
    completed_at: datetime | None = None
    submission_id: uuid.UUID | None = None


class AdvanceResponse(BaseModel):
    complete: bool
    session: SessionView
    submission: SubmissionSchema | None = None
