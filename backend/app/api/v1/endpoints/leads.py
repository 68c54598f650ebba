"""Lead API - manual lead entry, status updates and the Facebook Lead Ads webhook."""

import logging
import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.models.lead import Lead
from app.schemas.leads import (
    LeadCreate,
    LeadIngestResponse,
    LeadListResponse,
    LeadResponse,
    LeadUpdate,
)
from app.services.leads import ingest_lead, parse_facebook_lead, update_lead

logger = logging.getLogger(__name__)

router = APIRouter()
webhook_router = APIRouter()


def _ingest_response(lead: Lead, created: bool) -> LeadIngestResponse:
    return LeadIngestResponse(
        message="Lead added successfully" if created else "Lead already exists",
        duplicate=not created,
        lead=LeadResponse.model_validate(lead),
    )


# ---------------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------------


@router.get("/", response_model=LeadListResponse)
def list_leads(
    status: str | None = Query(None),
    db: Session = Depends(get_db),
):
    query = select(Lead)
    count_query = select(func.count()).select_from(Lead)
    if status is not None:
        query = query.where(Lead.status == status)
        count_query = count_query.where(Lead.status == status)

    total = db.execute(count_query).scalar_one()
    leads = db.execute(query.order_by(Lead.date_added.desc())).scalars().all()
    return LeadListResponse(items=leads, total=total)


@router.post("/", response_model=LeadIngestResponse)
def create_lead(payload: LeadCreate, db: Session = Depends(get_db)):
    lead, created = ingest_lead(db, payload)
    return _ingest_response(lead, created)


@router.patch("/{lead_id}", response_model=LeadResponse)
def patch_lead(
    lead_id: uuid.UUID,
    payload: LeadUpdate,
    db: Session = Depends(get_db),
):
    lead = db.get(Lead, lead_id)
    if lead is None:
        raise HTTPException(status_code=404, detail="Lead not found")

    update_data = payload.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=422, detail="No fields to update")

    return update_lead(db, lead, update_data)


# ---------------------------------------------------------------------------
# Facebook Lead Ads webhook
# ---------------------------------------------------------------------------


@webhook_router.get("/facebook", response_class=PlainTextResponse)
def verify_facebook_webhook(
    mode: str | None = Query(None, alias="hub.mode"),
    token: str | None = Query(None, alias="hub.verify_token"),
    challenge: str = Query("", alias="hub.challenge"),
):
    """Subscription handshake: echo the challenge when the verify token matches."""
    if mode == "subscribe" and settings.FACEBOOK_VERIFY_TOKEN and token == settings.FACEBOOK_VERIFY_TOKEN:
        logger.info("Facebook webhook verified")
        return challenge
    logger.warning("Facebook webhook verification failed (mode=%s)", mode)
    raise HTTPException(status_code=403, detail="Verification failed")


@webhook_router.post("/facebook", response_model=LeadIngestResponse)
def receive_facebook_lead(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    fields = parse_facebook_lead(payload)
    if fields is None:
        logger.info("Facebook webhook received without lead data")
        return LeadIngestResponse(message="Webhook received but no lead data")

    if not fields["name"] or not fields["phone"]:
        logger.warning("Facebook lead missing name or phone; not ingested")
        return LeadIngestResponse(message="Lead data missing name or phone")

    try:
        lead_in = LeadCreate(**fields)
    except ValidationError as exc:
        logger.warning("Facebook lead rejected: %d invalid field(s)", exc.error_count())
        return LeadIngestResponse(message="Lead data failed validation")

    lead, created = ingest_lead(db, lead_in)
    return _ingest_response(lead, created)
