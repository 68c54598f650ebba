"""Form funnel events and per-form analytics summary."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Literal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.form_event import FormEvent
from app.models.submission import Submission
from app.schemas.forms import FormAnalytics

logger = logging.getLogger(__name__)

EventType = Literal["view", "start", "complete", "abandon"]


def record_event(
    db: Session,
    form_id: uuid.UUID,
    event_type: EventType,
    session_id: uuid.UUID | None = None,
    data: dict | None = None,
) -> FormEvent:
    """Stage a funnel event; committed with the caller's transaction."""
    event = FormEvent(form_id=form_id, session_id=session_id, event_type=event_type, event_data=data)
    db.add(event)
    logger.debug("Form %s event %s (session=%s)", form_id, event_type, session_id)
    return event


def get_form_analytics(db: Session, form_id: uuid.UUID, now: datetime | None = None) -> FormAnalytics:
    rows = db.execute(
        select(FormEvent.event_type, func.count()).where(FormEvent.form_id == form_id).group_by(FormEvent.event_type)
    ).all()
    counts = {event_type: count for event_type, count in rows}

    since = (now or datetime.now(timezone.utc)) - timedelta(days=settings.RECENT_RESPONSES_DAYS)
    recent = db.execute(
        select(func.count())
        .select_from(Submission)
        .where(Submission.form_id == form_id, Submission.submitted_at >= since)
    ).scalar_one()

    starts = counts.get("start", 0)
    completes = counts.get("complete", 0)
    return FormAnalytics(
        form_id=form_id,
        views=counts.get("view", 0),
        starts=starts,
        completes=completes,
        abandons=counts.get("abandon", 0),
        recent_submissions=recent,
        completion_rate=round(completes / starts, 4) if starts else 0.0,
    )
