import uuid
from datetime import datetime

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Lead(Base):
    """A sales lead ingested from a webhook or added by hand.

    Phone number is the de-duplication key.
    """

    __tablename__ = "leads"
    __table_args__ = (
        Index("ix_leads_phone", "phone"),
        Index("ix_leads_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    units: Mapped[str | None] = mapped_column(String(100))
    source: Mapped[str] = mapped_column(String(100), nullable=False, default="Manual")
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="new", server_default="new")
    notes: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    date_added: Mapped[datetime] = mapped_column(nullable=False)
    last_contact: Mapped[datetime | None] = mapped_column()
    next_follow_up: Mapped[datetime | None] = mapped_column()

    def __repr__(self) -> str:
        return f"<Lead {self.phone} ({self.status})>"
