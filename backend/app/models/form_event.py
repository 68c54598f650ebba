import uuid
from datetime import datetime

from sqlalchemy import Enum, ForeignKey, Index, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class FormEvent(Base):
    """Funnel event for a form: view, start, complete or abandon."""

    __tablename__ = "form_events"
    __table_args__ = (
        Index("ix_form_events_form_id", "form_id"),
        Index("ix_form_events_form_type", "form_id", "event_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("forms.id"), nullable=False)
    session_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    event_type: Mapped[str] = mapped_column(
        Enum("view", "start", "complete", "abandon", name="form_event_type"),
        nullable=False,
    )
    event_data: Mapped[dict | None] = mapped_column(JSONB)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    form: Mapped["Form"] = relationship(back_populates="events")

    def __repr__(self) -> str:
        return f"<FormEvent {self.event_type}>"
