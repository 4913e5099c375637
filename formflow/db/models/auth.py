"""SQLAlchemy ORM models for user accounts."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String, Uuid, func, text, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formflow.db.base import Base
from formflow.utils.datetime_parsing import utc_now

if TYPE_CHECKING:
    from formflow.db.models import Form, Template


class User(Base):
    """A form author. Respondents do not need an account."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )
    # Bumped to revoke outstanding session tokens
    token_version: Mapped[int] = mapped_column(
        Integer, default=1, server_default=text("1"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False
    )

    forms: Mapped[list["Form"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )
    templates: Mapped[list["Template"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )
