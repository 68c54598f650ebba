"""Lead ingestion - manual entry and the Facebook Lead Ads webhook.

Leads are de-duplicated on exact phone number equality. This is a soft guard:
no match simply means a new lead is created.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.lead import Lead
from app.schemas.leads import LeadCreate

logger = logging.getLogger(__name__)

FACEBOOK_LEAD_SOURCE = "Facebook Lead Ad"

# Lead attribute -> candidate field names in a lead-ad form, in priority order
FACEBOOK_FIELD_KEYS: dict[str, list[str]] = {
    "name": ["full_name", "first_name", "name"],
    "phone": ["phone_number", "phone", "mobile_number"],
    "email": ["email", "email_address"],
    "units": ["units", "number_of_units", "quantity"],
}


def find_by_phone(db: Session, phone: str) -> Lead | None:
    return db.execute(select(Lead).where(Lead.phone == phone).limit(1)).scalar_one_or_none()


def ingest_lead(db: Session, payload: LeadCreate, now: datetime | None = None) -> tuple[Lead, bool]:
    """Return (lead, created). An existing lead with the same phone is returned untouched."""
    existing = find_by_phone(db, payload.phone)
    if existing is not None:
        logger.info("Lead already exists for phone %s (lead=%s)", payload.phone, existing.id)
        return existing, False

    now = now or datetime.now(timezone.utc)
    lead = Lead(
        name=payload.name,
        phone=payload.phone,
        email=payload.email or None,
        units=payload.units or None,
        source=payload.source,
        status="new",
        notes=[],
        date_added=now,
        last_contact=None,
        next_follow_up=now + timedelta(hours=settings.LEAD_FOLLOW_UP_HOURS),
    )
    db.add(lead)
    db.commit()
    db.refresh(lead)
    logger.info("New lead added: %s (%s, source=%s)", lead.id, lead.phone, lead.source)
    return lead, True


def update_lead(db: Session, lead: Lead, changes: dict[str, Any], now: datetime | None = None) -> Lead:
    """Apply changes; a status change stamps last_contact."""
    for field, value in changes.items():
        setattr(lead, field, value)
    if changes.get("status"):
        lead.last_contact = now or datetime.now(timezone.utc)
    db.commit()
    db.refresh(lead)
    return lead


# ---------------------------------------------------------------------------
# Facebook Lead Ads
# ---------------------------------------------------------------------------


def extract_facebook_field(value: dict[str, Any], possible_keys: list[str]) -> str:
    """First non-empty value among field_data entries matching any key.

    A field matches on exact name or when its name contains the key
    (case-insensitive). Keys are tried in order.
    """
    field_data = value.get("field_data") if isinstance(value, dict) else None
    if not isinstance(field_data, list):
        return ""

    for key in possible_keys:
        for field in field_data:
            if not isinstance(field, dict):
                continue
            name = str(field.get("name", ""))
            if name != key and key.lower() not in name.lower():
                continue
            values = field.get("values") or []
            if values and values[0]:
                return str(values[0])
            break
    return ""


def _first(items: Any) -> Any:
    if isinstance(items, list) and items:
        return items[0]
    return None


def parse_facebook_lead(payload: dict[str, Any]) -> dict[str, str] | None:
    """Map a lead-ad webhook body to lead fields, or None if it carries no lead."""
    entry = _first(payload.get("entry"))
    changes = _first(entry.get("changes")) if isinstance(entry, dict) else None
    value = changes.get("value") if isinstance(changes, dict) else None
    if not isinstance(value, dict) or not value.get("leadgen_id"):
        return None

    fields = {attr: extract_facebook_field(value, keys) for attr, keys in FACEBOOK_FIELD_KEYS.items()}
    fields["source"] = FACEBOOK_LEAD_SOURCE
    return fields
