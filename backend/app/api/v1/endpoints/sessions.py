"""Respondent session API - answer questions, move between blocks, submit."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.form_session import FormSession
from app.schemas.forms import SubmissionSchema
from app.schemas.sessions import AdvanceResponse, AnswerInput, SessionView
from app.services.form_engine import (
    FormDefinition,
    InvalidFormError,
    NavigationError,
    PreconditionFailedError,
)
from app.services.form_sessions import (
    SessionClosedError,
    abandon_session,
    describe_session,
    go_back,
    go_next,
    record_answer,
)
from app.services.form_store import load_definition

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_session_or_404(session_id: uuid.UUID, db: Session, lock: bool = False) -> FormSession:
    session = db.get(FormSession, session_id, with_for_update=lock)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _definition_or_409(session: FormSession) -> FormDefinition:
    try:
        return load_definition(session.form)
    except InvalidFormError as exc:
        logger.error("Form %s has an invalid definition: %s", session.form_id, exc)
        raise HTTPException(status_code=409, detail="Form definition is invalid") from exc


def _closed_409(exc: SessionClosedError) -> HTTPException:
    return HTTPException(status_code=409, detail=f"Session is {exc.reason}")


def _stale_409(session: FormSession, exc: NavigationError) -> HTTPException:
    logger.warning(
        "Session %s is at block %d but form %s now has %d blocks",
        session.id,
        exc.block_index,
        session.form_id,
        exc.block_count,
    )
    return HTTPException(status_code=409, detail="Session position no longer exists in the form")


def _view_or_409(session: FormSession, definition: FormDefinition) -> SessionView:
    try:
        return describe_session(session, definition)
    except NavigationError as exc:
        raise _stale_409(session, exc) from exc


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/{session_id}", response_model=SessionView)
def get_session(session_id: uuid.UUID, db: Session = Depends(get_db)):
    session = _get_session_or_404(session_id, db)
    return _view_or_409(session, _definition_or_409(session))


@router.put("/{session_id}/answers", response_model=SessionView)
def put_answer(
    session_id: uuid.UUID,
    payload: AnswerInput,
    db: Session = Depends(get_db),
):
    session = _get_session_or_404(session_id, db)
    definition = _definition_or_409(session)
    _view_or_409(session, definition)
    try:
        session = record_answer(db, session, payload.question_id, payload.value)
    except SessionClosedError as exc:
        raise _closed_409(exc) from exc
    return _view_or_409(session, definition)


@router.post("/{session_id}/next", response_model=AdvanceResponse)
def next_block(session_id: uuid.UUID, db: Session = Depends(get_db)):
    # Row lock so concurrent submits of the last block finalize once
    session = _get_session_or_404(session_id, db, lock=True)
    definition = _definition_or_409(session)
    try:
        session, submission = go_next(db, session)
    except SessionClosedError as exc:
        raise _closed_409(exc) from exc
    except NavigationError as exc:
        raise _stale_409(session, exc) from exc
    except PreconditionFailedError as exc:
        raise HTTPException(
            status_code=422,
            detail=f"Required questions unanswered: {', '.join(exc.missing_question_ids)}",
        ) from exc

    return AdvanceResponse(
        complete=submission is not None,
        session=_view_or_409(session, definition),
        submission=SubmissionSchema.model_validate(submission) if submission is not None else None,
    )


@router.post("/{session_id}/back", response_model=SessionView)
def previous_block(session_id: uuid.UUID, db: Session = Depends(get_db)):
    session = _get_session_or_404(session_id, db)
    definition = _definition_or_409(session)
    _view_or_409(session, definition)
    try:
        session = go_back(db, session)
    except SessionClosedError as exc:
        raise _closed_409(exc) from exc
    return _view_or_409(session, definition)


@router.delete("/{session_id}", status_code=204)
def abandon(session_id: uuid.UUID, db: Session = Depends(get_db)):
    session = _get_session_or_404(session_id, db)
    try:
        abandon_session(db, session)
    except SessionClosedError as exc:
        raise _closed_409(exc) from exc
