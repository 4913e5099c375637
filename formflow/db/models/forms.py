"""SQLAlchemy ORM models for forms and their questions."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    false,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formflow.db.base import Base
from formflow.db.enums import ConditionOperator
from formflow.db.types import JsonColumn
from formflow.utils.datetime_parsing import utc_now

if TYPE_CHECKING:
    from formflow.db.models import Response, SurveyInvitation, User


class Form(Base):
    """A survey definition owned by a user."""

    __tablename__ = "forms"
    __table_args__ = (
        Index("idx_forms_owner", "owner_user_id"),
        Index("idx_forms_open", "is_open"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_open: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )
    deadline: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False
    )

    owner: Mapped["User"] = relationship(back_populates="forms")
    questions: Mapped[list["Question"]] = relationship(
        back_populates="form",
        order_by="Question.order_index",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    responses: Mapped[list["Response"]] = relationship(
        back_populates="form", cascade="all, delete-orphan", passive_deletes=True
    )
    invitations: Mapped[list["SurveyInvitation"]] = relationship(
        back_populates="form", cascade="all, delete-orphan", passive_deletes=True
    )


class Question(Base):
    """
    A typed question belonging to a form.

    The optional display condition points at an earlier question of the same
    form; the question is shown only when that question's answer satisfies
    ``condition_operator`` against ``condition_value``.
    """

    __tablename__ = "questions"
    __table_args__ = (Index("idx_questions_form_order", "form_id", "order_index"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    options: Mapped[list[str] | None] = mapped_column(JsonColumn, nullable=True)
    required: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)

    condition_question_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="SET NULL"), nullable=True
    )
    condition_operator: Mapped[str | None] = mapped_column(
        String(20), default=ConditionOperator.EQUALS.value, nullable=True
    )
    condition_value: Mapped[Any | None] = mapped_column(JsonColumn, nullable=True)

    form: Mapped["Form"] = relationship(back_populates="questions")

    @property
    def has_condition(self) -> bool:
        return self.condition_question_id is not None
