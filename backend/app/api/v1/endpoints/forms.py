"""Form API - authoring CRUD, publishing, submissions, CSV export and analytics."""

import csv
import io
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.models.form import Form
from app.models.form_session import FormSession
from app.models.submission import Submission
from app.schemas.forms import (
    FormAnalytics,
    FormCreate,
    FormListResponse,
    FormResponse,
    FormUpdate,
    PublicFormResponse,
    ShareLinks,
    SubmissionListResponse,
)
from app.schemas.sessions import SessionView
from app.services.form_analytics import get_form_analytics, record_event
from app.services.form_engine import (
    Block,
    FormDefinition,
    InvalidFormError,
    Media,
    NavigationError,
    Question,
    publish_errors,
    structural_errors,
)
from app.services.form_sessions import describe_session, start_session
from app.services.form_store import load_definition

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_form_or_404(form_id: uuid.UUID, db: Session) -> Form:
    form = db.get(Form, form_id)
    if form is None:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


def _validate_definition(
    title: str,
    blocks: list[Block],
    questions: list[Question],
    media: Media | None,
    publishing: bool,
) -> list[str]:
    """Structural errors always; option-count checks only when going live."""
    definition = FormDefinition(id="", title=title, blocks=blocks, questions=questions, media=media)
    errors = structural_errors(definition)
    if publishing:
        errors.extend(publish_errors(definition))
    return errors


def _stored_definition_errors(form: Form, publishing: bool) -> list[str]:
    try:
        definition = load_definition(form)
    except InvalidFormError as exc:
        return exc.problems
    return publish_errors(definition) if publishing else []


def _dump(items) -> list[dict]:
    return [item.model_dump(mode="json") for item in items]


# ---------------------------------------------------------------------------
# Form CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=FormResponse, status_code=201)
def create_form(payload: FormCreate, db: Session = Depends(get_db)):
    validation_errors = _validate_definition(
        payload.title, payload.blocks, payload.questions, payload.media, publishing=False
    )
    if validation_errors:
        raise HTTPException(status_code=422, detail="; ".join(validation_errors))

    form = Form(
        title=payload.title,
        description=payload.description,
        blocks=_dump(payload.blocks),
        questions=_dump(payload.questions),
        media=payload.media.model_dump(mode="json") if payload.media else None,
        status="draft",
    )
    db.add(form)
    db.commit()
    db.refresh(form)
    logger.info("Created form %s (%d blocks, %d questions)", form.id, len(form.blocks), len(form.questions))
    return form


@router.get("/", response_model=FormListResponse)
def list_forms(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: str | None = Query(None),
    db: Session = Depends(get_db),
):
    query = select(Form)
    count_query = select(func.count()).select_from(Form)

    if status is not None:
        query = query.where(Form.status == status)
        count_query = count_query.where(Form.status == status)

    total = db.execute(count_query).scalar_one()
    offset = (page - 1) * page_size
    forms = db.execute(query.order_by(Form.created_at.desc()).offset(offset).limit(page_size)).scalars().all()

    return FormListResponse(
        items=forms,
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{form_id}", response_model=FormResponse)
def get_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    return _get_form_or_404(form_id, db)


@router.put("/{form_id}", response_model=FormResponse)
def update_form(
    form_id: uuid.UUID,
    payload: FormUpdate,
    db: Session = Depends(get_db),
):
    form = _get_form_or_404(form_id, db)

    if form.status == "archived":
        raise HTTPException(status_code=409, detail="Cannot update an archived form")

    update_data = payload.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=422, detail="No fields to update")

    if any(key in update_data for key in ("blocks", "questions", "media")):
        if form.status == "active":
            raise HTTPException(
                status_code=409,
                detail="Cannot edit blocks or questions of an active form; unpublish it first",
            )
        blocks = payload.blocks if payload.blocks is not None else [Block.model_validate(b) for b in form.blocks]
        questions = (
            payload.questions
            if payload.questions is not None
            else [Question.model_validate(q) for q in form.questions]
        )
        media = payload.media if "media" in update_data else (Media.model_validate(form.media) if form.media else None)
        publishing = update_data.get("status", form.status) == "active"
        validation_errors = _validate_definition(
            payload.title or form.title, blocks, questions, media, publishing=publishing
        )
        if validation_errors:
            raise HTTPException(status_code=422, detail="; ".join(validation_errors))
        update_data["blocks"] = _dump(blocks)
        update_data["questions"] = _dump(questions)
        update_data["media"] = media.model_dump(mode="json") if media else None
    elif update_data.get("status") == "active" and form.status != "active":
        validation_errors = _stored_definition_errors(form, publishing=True)
        if validation_errors:
            raise HTTPException(status_code=422, detail="; ".join(validation_errors))

    for field, value in update_data.items():
        setattr(form, field, value)

    db.commit()
    db.refresh(form)
    return form


@router.delete("/{form_id}", status_code=204)
def delete_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    form = _get_form_or_404(form_id, db)
    db.delete(form)
    db.commit()
    logger.info("Deleted form %s", form_id)


# ---------------------------------------------------------------------------
# Publishing & sharing
# ---------------------------------------------------------------------------


@router.post("/{form_id}/publish", response_model=FormResponse)
def publish_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    form = _get_form_or_404(form_id, db)
    if form.status == "archived":
        raise HTTPException(status_code=409, detail="Cannot publish an archived form")

    validation_errors = _stored_definition_errors(form, publishing=True)
    if validation_errors:
        raise HTTPException(status_code=422, detail="; ".join(validation_errors))

    form.status = "active"
    db.commit()
    db.refresh(form)
    logger.info("Published form %s", form.id)
    return form


@router.post("/{form_id}/unpublish", response_model=FormResponse)
def unpublish_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    form = _get_form_or_404(form_id, db)
    if form.status != "active":
        raise HTTPException(status_code=409, detail="Form is not published")

    form.status = "draft"
    db.commit()
    db.refresh(form)
    return form


@router.get("/{form_id}/share", response_model=ShareLinks)
def get_share_links(form_id: uuid.UUID, db: Session = Depends(get_db)):
    form = _get_form_or_404(form_id, db)
    base = settings.PUBLIC_BASE_URL.rstrip("/")
    return ShareLinks(url=f"{base}/form/{form.id}", short_url=f"{base}/f/{form.id}")


# ---------------------------------------------------------------------------
# Respondent entry points
# ---------------------------------------------------------------------------


@router.get("/{form_id}/public", response_model=PublicFormResponse)
def get_public_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    """Published definition for respondents. Counts as a view."""
    form = db.get(Form, form_id)
    if form is None or form.status != "active":
        raise HTTPException(status_code=404, detail="Form not found")

    record_event(db, form.id, "view")
    db.commit()
    return form


@router.post("/{form_id}/sessions", response_model=SessionView, status_code=201)
def create_session(
    form_id: uuid.UUID,
    paginate_questions: bool = Query(False),
    db: Session = Depends(get_db),
):
    form = _get_form_or_404(form_id, db)

    if form.status != "active":
        raise HTTPException(status_code=409, detail="Form is not active - cannot accept responses")

    try:
        session = start_session(db, form, paginate_questions=paginate_questions)
        definition = load_definition(form)
    except InvalidFormError as exc:
        logger.error("Form %s has an invalid definition: %s", form.id, exc)
        raise HTTPException(status_code=409, detail="Form definition is invalid") from exc

    return describe_session(session, definition)


@router.get("/{form_id}/sessions", response_model=list[SessionView])
def list_open_sessions(form_id: uuid.UUID, db: Session = Depends(get_db)):
    """In-progress sessions, oldest first."""
    form = _get_form_or_404(form_id, db)
    try:
        definition = load_definition(form)
    except InvalidFormError as exc:
        raise HTTPException(status_code=409, detail="Form definition is invalid") from exc

    sessions = (
        db.execute(
            select(FormSession)
            .where(
                FormSession.form_id == form_id,
                FormSession.completed_at.is_(None),
                FormSession.abandoned_at.is_(None),
            )
            .order_by(FormSession.created_at.asc())
        )
        .scalars()
        .all()
    )
    views = []
    for s in sessions:
        try:
            views.append(describe_session(s, definition))
        except NavigationError:
            logger.warning("Skipping session %s: block %d no longer exists in form %s", s.id, s.block_index, form_id)
    return views


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


@router.get("/{form_id}/submissions", response_model=SubmissionListResponse)
def list_submissions(
    form_id: uuid.UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    min_score: int | None = Query(None, ge=0, le=100),
    db: Session = Depends(get_db),
):
    _get_form_or_404(form_id, db)

    query = select(Submission).where(Submission.form_id == form_id)
    count_query = select(func.count()).select_from(Submission).where(Submission.form_id == form_id)
    if min_score is not None:
        query = query.where(Submission.lead_score >= min_score)
        count_query = count_query.where(Submission.lead_score >= min_score)

    total = db.execute(count_query).scalar_one()
    offset = (page - 1) * page_size
    submissions = (
        db.execute(query.order_by(Submission.submitted_at.desc()).offset(offset).limit(page_size)).scalars().all()
    )

    return SubmissionListResponse(
        items=submissions,
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{form_id}/submissions/download")
def download_submissions(
    form_id: uuid.UUID,
    db: Session = Depends(get_db),
):
    """Export all submissions as CSV."""
    form = _get_form_or_404(form_id, db)

    submissions = (
        db.execute(select(Submission).where(Submission.form_id == form_id).order_by(Submission.submitted_at.asc()))
        .scalars()
        .all()
    )

    questions = form.questions or []

    output = io.StringIO()
    writer = csv.writer(output)

    # Header row: submission_id, one column per question label, contact fields, score, submitted_at
    header = ["submission_id"]
    for q in questions:
        header.append(q.get("label") or q.get("id", ""))
    header.extend(["name", "email", "phone", "lead_score", "submitted_at"])
    writer.writerow(header)

    for sub in submissions:
        row = [str(sub.id)]
        for q in questions:
            answer = sub.answers.get(q.get("id"), "")
            if isinstance(answer, list):
                answer = ", ".join(str(a) for a in answer)
            row.append(str(answer) if answer is not None else "")
        contact = sub.contact_info or {}
        row.extend(
            [
                contact.get("name", ""),
                contact.get("email", ""),
                contact.get("phone", ""),
                str(sub.lead_score),
                sub.submitted_at.isoformat() if sub.submitted_at else "",
            ]
        )
        writer.writerow(row)

    output.seek(0)

    filename = f"form_{form.title.replace(' ', '_')}_{form_id}.csv"
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{form_id}/analytics", response_model=FormAnalytics)
def form_analytics(form_id: uuid.UUID, db: Session = Depends(get_db)):
    _get_form_or_404(form_id, db)
    return get_form_analytics(db, form_id)
