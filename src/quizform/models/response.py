"""Response model storing one respondent's graded submission."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quizform.models.base import Base, JSONType

if TYPE_CHECKING:
    from quizform.models.form import Form


class Response(Base):
    """A submitted answer set and the score report computed for it.

    At most one row exists per (form_id, respondent_id); the unique
    constraint is what makes submission exactly-once.
    """

    __tablename__ = "responses"
    __table_args__ = (
        UniqueConstraint("form_id", "respondent_id", name="uq_response_form_respondent"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    form_id: Mapped[str] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    respondent_id: Mapped[str] = mapped_column(String(255), nullable=False)
    answers: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    score: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    form: Mapped[Form] = relationship("Form", back_populates="responses")
