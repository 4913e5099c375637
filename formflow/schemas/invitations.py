"""Schemas for survey invitations and reminders."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class InvitationRecipient(BaseModel):
    email: str
    name: str | None = Field(None, max_length=100)


class InvitationCreate(BaseModel):
    emails: list[InvitationRecipient] = Field(default_factory=list)
    message: str | None = Field(None, max_length=2000)


class ReminderRequest(BaseModel):
    invitation_ids: list[UUID] | None = None
    all_pending: bool = False


class InvitationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None
    status: str
    sent_at: datetime | None
    responded_at: datetime | None
    reminder_count: int
    last_reminder_at: datetime | None
    created_at: datetime


class InvitationListResponse(BaseModel):
    invitations: list[InvitationRead]
    stats: dict[str, int]


class BatchItemResult(BaseModel):
    id: UUID | None = None
    email: str | None = None
    name: str | None = None
    status: str | None = None
    reminder_count: int | None = None


class BatchItemError(BaseModel):
    email: str | None = None
    invitation_id: UUID | None = None
    error: str
    details: str | None = None


class BatchSendResponse(BaseModel):
    success: bool = True
    sent: int
    failed: int
    results: list[BatchItemResult]
    errors: list[BatchItemError]
