"""SQLAlchemy ORM model for reusable question-set templates."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, Uuid, false, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formflow.db.base import Base
from formflow.db.enums import DEFAULT_TEMPLATE_CATEGORY
from formflow.db.types import JsonColumn
from formflow.utils.datetime_parsing import utc_now

if TYPE_CHECKING:
    from formflow.db.models import User


class Template(Base):
    """
    Reusable question-set blueprint.

    Presets have no owner and are visible to everyone; user templates are
    visible to their owner only. ``questions`` holds question payloads in the
    same shape the form builder accepts (keys + key-based conditions).
    """

    __tablename__ = "templates"
    __table_args__ = (
        Index("idx_templates_owner", "owner_user_id"),
        Index("idx_templates_category", "category"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(
        String(50),
        default=DEFAULT_TEMPLATE_CATEGORY,
        server_default=text(f"'{DEFAULT_TEMPLATE_CATEGORY}'"),
        nullable=False,
    )
    questions: Mapped[list[dict]] = mapped_column(JsonColumn, nullable=False)
    is_preset: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )

    owner: Mapped["User | None"] = relationship(back_populates="templates")
