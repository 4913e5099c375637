"""Schemas for the question-set template library."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TemplateCreate(BaseModel):
    name: str = Field("", max_length=200)
    description: str | None = None
    category: str | None = Field(None, max_length=50)
    questions: list[dict[str, Any]] = Field(default_factory=list)


class TemplateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_user_id: UUID | None
    name: str
    description: str | None
    category: str
    questions: list[dict[str, Any]]
    is_preset: bool
    created_at: datetime


class TemplateListResponse(BaseModel):
    templates: list[TemplateRead]


class UseTemplateRequest(BaseModel):
    title: str | None = Field(None, max_length=200)
    description: str | None = None
