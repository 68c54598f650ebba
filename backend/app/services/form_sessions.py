"""Respondent sessions - the persistence shell around the form engine.

Each call loads the stored NavigationState and answers from a FormSession
row, runs one pure engine operation and writes the result back. When the
engine reports that the flow is complete the answers are finalized into a
Submission and the form's response counter is bumped, all in one commit.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.form import Form
from app.models.form_session import FormSession
from app.models.submission import Submission
from app.schemas.sessions import BlockView, SessionView
from app.services.form_analytics import record_event
from app.services.form_engine import (
    FlowComplete,
    FormDefinition,
    NavigationState,
    advance,
    apply_answer,
    finalize,
    questions_for_state,
    retreat,
    unanswered_required,
)
from app.services.form_store import increment_response_count, load_definition, save_submission

logger = logging.getLogger(__name__)


class SessionClosedError(Exception):
    """Raised when a completed or abandoned session receives further input."""

    def __init__(self, session_id: str, reason: str) -> None:
        self.session_id = session_id
        self.reason = reason
        super().__init__(f"Session {session_id} is {reason}")


def _state_of(session: FormSession) -> NavigationState:
    return NavigationState(block_index=session.block_index, question_index=session.question_index)


def _ensure_open(session: FormSession) -> None:
    if session.completed_at is not None:
        raise SessionClosedError(str(session.id), "completed")
    if session.abandoned_at is not None:
        raise SessionClosedError(str(session.id), "abandoned")


def start_session(db: Session, form: Form, paginate_questions: bool = False) -> FormSession:
    """Open a session at the first block. Raises InvalidFormError for broken definitions."""
    load_definition(form)

    session = FormSession(
        form_id=form.id,
        block_index=0,
        question_index=0 if paginate_questions else None,
        answers={},
    )
    db.add(session)
    db.flush()
    record_event(db, form.id, "start", session_id=session.id)
    db.commit()
    db.refresh(session)
    logger.info("Started session %s on form %s", session.id, form.id)
    return session


def record_answer(db: Session, session: FormSession, question_id: str, value: Any) -> FormSession:
    _ensure_open(session)
    definition = load_definition(session.form)
    question = definition.question(question_id)
    question_type = question.type if question is not None else None

    session.answers = apply_answer(session.answers or {}, question_id, value, question_type)
    db.commit()
    db.refresh(session)
    return session


def go_next(db: Session, session: FormSession) -> tuple[FormSession, Submission | None]:
    """Advance the session; returns the stored Submission once the flow completes.

    Raises PreconditionFailedError when required questions are unanswered.
    """
    _ensure_open(session)
    definition = load_definition(session.form)
    answers = session.answers or {}

    result = advance(definition, _state_of(session), answers)

    if isinstance(result, FlowComplete):
        finalized = finalize(definition, answers)
        try:
            submission_id = save_submission(db, finalized, session_id=session.id)
        except IntegrityError:
            # submissions.session_id is unique; another request finalized first
            db.rollback()
            raise SessionClosedError(str(session.id), "completed") from None
        increment_response_count(db, session.form_id, at=finalized.submitted_at)
        record_event(
            db,
            session.form_id,
            "complete",
            session_id=session.id,
            data={"lead_score": finalized.lead_score, "has_contact": finalized.contact_info.email is not None},
        )
        session.completed_at = finalized.submitted_at
        db.commit()
        db.refresh(session)
        logger.info(
            "Session %s completed form %s from block %d (submission=%s, lead_score=%d)",
            session.id,
            session.form_id,
            result.from_block_index,
            submission_id,
            finalized.lead_score,
        )
        return session, db.get(Submission, submission_id)

    session.block_index = result.block_index
    session.question_index = result.question_index
    db.commit()
    db.refresh(session)
    return session, None


def go_back(db: Session, session: FormSession) -> FormSession:
    _ensure_open(session)
    state = retreat(_state_of(session))
    session.block_index = state.block_index
    session.question_index = state.question_index
    db.commit()
    db.refresh(session)
    return session


def abandon_session(db: Session, session: FormSession) -> FormSession:
    _ensure_open(session)
    session.abandoned_at = datetime.now(timezone.utc)
    record_event(
        db,
        session.form_id,
        "abandon",
        session_id=session.id,
        data={"block_index": session.block_index},
    )
    db.commit()
    db.refresh(session)
    logger.info("Session %s abandoned at block %d", session.id, session.block_index)
    return session


def describe_session(session: FormSession, definition: FormDefinition) -> SessionView:
    """What the respondent should see right now."""
    answers = session.answers or {}
    view = SessionView(
        id=session.id,
        form_id=session.form_id,
        block_index=session.block_index,
        question_index=session.question_index,
        answers=answers,
        completed_at=session.completed_at,
        submission_id=session.submission.id if session.submission is not None else None,
    )
    if session.completed_at is not None:
        return view

    state = _state_of(session)
    questions = questions_for_state(definition, state)
    missing = unanswered_required(questions, answers)
    block = definition.blocks[state.block_index]

    view.block = BlockView(id=block.id, title=block.title)
    view.questions = [q.model_dump(mode="json") for q in questions]
    view.missing_required = missing
    view.can_advance = not missing
    view.is_first_block = state.block_index == 0
    view.is_last_block = state.block_index == len(definition.blocks) - 1
    return view
