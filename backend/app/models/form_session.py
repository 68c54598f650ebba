import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class FormSession(Base):
    """One respondent's in-progress pass through a form.

    Holds the navigation position and the answer snapshot between requests.
    The answers dict is keyed by question id; checkbox answers are lists:
        {"q1": "Rent", "q2": ["Pool", "Garden"], "q3": "jane@example.com"}
    """

    __tablename__ = "form_sessions"
    __table_args__ = (Index("ix_form_sessions_form_id", "form_id"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("forms.id"), nullable=False)
    block_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    question_index: Mapped[int | None] = mapped_column(Integer)
    answers: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    completed_at: Mapped[datetime | None] = mapped_column()
    abandoned_at: Mapped[datetime | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    form: Mapped["Form"] = relationship(back_populates="sessions")
    submission: Mapped["Submission | None"] = relationship(back_populates="session", uselist=False)

    def __repr__(self) -> str:
        state = "complete" if self.completed_at else f"block {self.block_index}"
        return f"<FormSession form={self.form_id} ({state})>"
