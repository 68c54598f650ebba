"""Storage side of the form engine.

Builds validated FormDefinitions from stored rows and persists finalized
submissions. Block and question arrays are passed through in stored order.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.models.form import Form
from app.models.submission import Submission
from app.services.form_engine import FinalizedSubmission, FormDefinition, load_form

logger = logging.getLogger(__name__)


def load_definition(form: Form) -> FormDefinition:
    """Validate a stored form. Raises InvalidFormError."""
    return load_form(
        {
            "id": str(form.id),
            "title": form.title,
            "description": form.description,
            "blocks": form.blocks or [],
            "questions": form.questions or [],
            "media": form.media,
        }
    )


def get_form(db: Session, form_id: uuid.UUID) -> FormDefinition | None:
    form = db.get(Form, form_id)
    if form is None:
        return None
    return load_definition(form)


def save_submission(
    db: Session,
    submission: FinalizedSubmission,
    session_id: uuid.UUID | None = None,
) -> uuid.UUID:
    """Stage a finalized submission in the current transaction and return its id."""
    row = Submission(
        id=submission.id,
        form_id=uuid.UUID(submission.form_id),
        session_id=session_id,
        answers=submission.answers,
        contact_info=submission.contact_info.as_dict(),
        lead_score=submission.lead_score,
        submitted_at=submission.submitted_at,
    )
    db.add(row)
    db.flush()
    return row.id


def increment_response_count(db: Session, form_id: uuid.UUID, at: datetime | None = None) -> None:
    db.execute(
        update(Form)
        .where(Form.id == form_id)
        .values(
            responses_count=Form.responses_count + 1,
            last_response_at=at or datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session="fetch")
    )
