import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Submission(Base):
    """A finalized form submission. Immutable once written.

    contact_info holds whatever the extractor found:
        {"name": "Jane Doe", "email": "jane@example.com", "phone": "+15551234567"}
    """

    __tablename__ = "submissions"
    __table_args__ = (
        Index("ix_submissions_form_id", "form_id"),
        Index("ix_submissions_form_submitted", "form_id", "submitted_at"),
        UniqueConstraint("session_id", name="uq_submissions_session_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("forms.id"), nullable=False)
    session_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("form_sessions.id"))
    answers: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    contact_info: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    lead_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submitted_at: Mapped[datetime] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    form: Mapped["Form"] = relationship(back_populates="submissions")
    session: Mapped["FormSession | None"] = relationship(back_populates="submission")

    def __repr__(self) -> str:
        return f"<Submission form={self.form_id} score={self.lead_score}>"
