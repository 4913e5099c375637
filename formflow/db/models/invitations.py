"""SQLAlchemy ORM model for survey invitations."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formflow.db.base import Base
from formflow.db.enums import DEFAULT_INVITATION_STATUS
from formflow.utils.datetime_parsing import utc_now

if TYPE_CHECKING:
    from formflow.db.models import Form


class SurveyInvitation(Base):
    """Email-tracked outreach record for one recipient of one form."""

    __tablename__ = "survey_invitations"
    __table_args__ = (
        UniqueConstraint("form_id", "email", name="uq_invitation_form_email"),
        UniqueConstraint("token", name="uq_invitation_token"),
        Index("idx_invitations_form_status", "form_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    token: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=DEFAULT_INVITATION_STATUS,
        server_default=text(f"'{DEFAULT_INVITATION_STATUS}'"),
        nullable=False,
    )
    sent_at: Mapped[datetime | None] = mapped_column(nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(nullable=True)
    reminder_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )
    last_reminder_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )

    form: Mapped["Form"] = relationship(back_populates="invitations")
