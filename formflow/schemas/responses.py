"""Schemas for response submission and listing."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class ResponseSubmit(BaseModel):
    answers: dict[str, Any] = Field(default_factory=dict)
    invitation_token: str | None = Field(None, max_length=64)


class ResponseSubmitResult(BaseModel):
    message: str
    response_id: UUID


class AnswerRead(BaseModel):
    question_id: UUID
    question_title: str
    question_type: str
    options: list[str] | None
    value: Any


class ResponseRead(BaseModel):
    id: UUID
    form_id: UUID
    invitation_id: UUID | None
    submitted_at: datetime
    answers: list[AnswerRead]


class ResponseListResponse(BaseModel):
    responses: list[ResponseRead]
    total: int
