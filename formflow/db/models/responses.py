"""SQLAlchemy ORM models for submitted responses."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import ForeignKey, Index, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formflow.db.base import Base
from formflow.db.types import JsonColumn
from formflow.utils.datetime_parsing import utc_now

if TYPE_CHECKING:
    from formflow.db.models import Form, Question, SurveyInvitation


class Response(Base):
    """One respondent's complete submission to a form."""

    __tablename__ = "responses"
    __table_args__ = (Index("idx_responses_form_submitted", "form_id", "submitted_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    invitation_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("survey_invitations.id", ondelete="SET NULL"), nullable=True
    )
    submitted_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )

    form: Mapped["Form"] = relationship(back_populates="responses")
    invitation: Mapped["SurveyInvitation | None"] = relationship()
    answers: Mapped[list["Answer"]] = relationship(
        back_populates="response", cascade="all, delete-orphan", passive_deletes=True
    )


class Answer(Base):
    """The value given for one question within one response."""

    __tablename__ = "answers"
    __table_args__ = (
        UniqueConstraint("response_id", "question_id", name="uq_answer_response_question"),
        Index("idx_answers_question", "question_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    response_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("responses.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    # str for text/single, list[str] for multiple, int for rating
    value: Mapped[Any | None] = mapped_column(JsonColumn, nullable=True)

    response: Mapped["Response"] = relationship(back_populates="answers")
    question: Mapped["Question"] = relationship()
