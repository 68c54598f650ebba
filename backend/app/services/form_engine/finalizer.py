"""Submission finalizer - contact extraction and lead scoring.

Turns a completed answer snapshot into a FinalizedSubmission value. Nothing
here touches storage; callers persist the result.

Contact extraction is a best-effort heuristic: it looks at every string
answer in mapping order and the last value that fits a category wins. Forms
with several free-text fields can be misclassified.
"""

import copy
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from app.services.form_engine.models import FormDefinition

# Optional +, first digit 1-9, then up to 15 more digits
_PHONE_PATTERN = re.compile(r"\+?[1-9][0-9]{0,15}")

EMAIL_POINTS = 20
PHONE_POINTS = 15
NAME_POINTS = 10
LONG_TEXT_POINTS = 5
LONG_TEXT_MIN_LENGTH = 20
MULTI_SELECT_POINTS = 10
MULTI_SELECT_MIN_MEMBERS = 2
MAX_SCORE = 100


@dataclass(frozen=True)
class ContactInfo:
    name: str | None = None
    email: str | None = None
    phone: str | None = None

    def as_dict(self) -> dict[str, str]:
        """Only the fields that were found."""
        return {k: v for k, v in (("name", self.name), ("email", self.email), ("phone", self.phone)) if v}


@dataclass(frozen=True)
class FinalizedSubmission:
    id: uuid.UUID
    form_id: str
    answers: dict[str, Any]
    submitted_at: datetime
    contact_info: ContactInfo = field(default_factory=ContactInfo)
    lead_score: int = 0


def extract_contact_info(answers: dict[str, Any]) -> ContactInfo:
    name = email = phone = None
    for value in answers.values():
        if not isinstance(value, str):
            continue
        if "@" in value and "." in value:
            email = value
        elif _PHONE_PATTERN.fullmatch(value):
            phone = value
        elif 2 < len(value) < 50:
            name = value
    return ContactInfo(name=name, email=email, phone=phone)


def _completeness_points(answer_count: int) -> int:
    if answer_count > 5:
        return 20
    if answer_count > 3:
        return 15
    if answer_count > 1:
        return 10
    return 0


def calculate_lead_score(answers: dict[str, Any], contact_info: ContactInfo) -> int:
    """Heuristic 0-100 lead quality score."""
    score = 0
    if contact_info.email:
        score += EMAIL_POINTS
    if contact_info.phone:
        score += PHONE_POINTS
    if contact_info.name:
        score += NAME_POINTS

    score += _completeness_points(len(answers))

    for value in answers.values():
        if isinstance(value, str) and len(value) > LONG_TEXT_MIN_LENGTH:
            score += LONG_TEXT_POINTS
        elif isinstance(value, list) and len(value) > MULTI_SELECT_MIN_MEMBERS:
            score += MULTI_SELECT_POINTS

    return max(0, min(score, MAX_SCORE))


def finalize(
    form: FormDefinition,
    answers: dict[str, Any],
    *,
    now: datetime | None = None,
) -> FinalizedSubmission:
    snapshot = copy.deepcopy(answers)
    contact_info = extract_contact_info(snapshot)
    return FinalizedSubmission(
        id=uuid.uuid4(),
        form_id=form.id,
        answers=snapshot,
        submitted_at=now or datetime.now(timezone.utc),
        contact_info=contact_info,
        lead_score=calculate_lead_score(snapshot, contact_info),
    )
