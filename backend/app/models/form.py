import uuid
from datetime import datetime

from sqlalchemy import Enum, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Form(Base):
    """Lead-capture form definition.

    Blocks and questions are stored as JSONB arrays in authored order; the
    order is what drives default navigation, so it must never be re-sorted.

        blocks:    [{"id": "b1", "title": "About you"}, ...]
        questions: [
            {
                "id": "q1",
                "block_id": "b1",
                "type": "radio",
                "label": "Are you buying or renting?",
                "required": true,
                "options": ["Buy", "Rent"],
                "conditional_logic": [
                    {"option": "Rent", "target_block_id": "b3", "action": "jump"}
                ]
            },
            ...
        ]
    """

    __tablename__ = "forms"
    __table_args__ = (Index("ix_forms_status", "status"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    blocks: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    questions: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    media: Mapped[dict | None] = mapped_column(JSONB)
    status: Mapped[str] = mapped_column(
        Enum("draft", "active", "archived", name="form_status"),
        nullable=False,
        server_default="draft",
    )
    responses_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_response_at: Mapped[datetime | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    sessions: Mapped[list["FormSession"]] = relationship(back_populates="form", cascade="all, delete-orphan")
    submissions: Mapped[list["Submission"]] = relationship(back_populates="form", cascade="all, delete-orphan")
    events: Mapped[list["FormEvent"]] = relationship(back_populates="form", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Form {self.title} ({self.status})>"
