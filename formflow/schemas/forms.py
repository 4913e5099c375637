"""Schemas for forms and questions."""

from datetime import date, datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


QuestionTypeLiteral = Literal["short_text", "long_text", "single", "multiple", "rating"]
ConditionOperatorLiteral = Literal["equals", "contains", "greater_than", "less_than"]


def _parse_deadline(value: Any) -> Any:
    # A bare "YYYY-MM-DD" is a date (open through that day), not midnight
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return value
    return value


class QuestionConditionInput(BaseModel):
    # Key of an earlier question in the same payload, or the id of an existing question
    question_key: str = Field(..., min_length=1, max_length=100)
    operator: ConditionOperatorLiteral = "equals"
    value: Any = None


class QuestionInput(BaseModel):
    id: UUID | None = None
    key: str | None = Field(None, max_length=100)
    type: QuestionTypeLiteral
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    options: list[str] | None = None
    required: bool = False
    condition: QuestionConditionInput | None = None


class FormCreate(BaseModel):
    title: str = Field("", max_length=200)
    description: str | None = None
    deadline: datetime | date | None = None
    questions: list[QuestionInput] = Field(default_factory=list)

    @field_validator("deadline", mode="before")
    @classmethod
    def parse_deadline(cls, v: Any) -> Any:
        return _parse_deadline(v)


class FormUpdate(BaseModel):
    title: str | None = Field(None, max_length=200)
    description: str | None = None
    deadline: datetime | date | None = None
    is_open: bool | None = None
    questions: list[QuestionInput] | None = None

    @field_validator("deadline", mode="before")
    @classmethod
    def parse_deadline(cls, v: Any) -> Any:
        return _parse_deadline(v)


class QuestionConditionRead(BaseModel):
    question_id: UUID
    operator: str
    value: Any = None


class QuestionRead(BaseModel):
    id: UUID
    type: str
    title: str
    description: str | None
    options: list[str] | None
    required: bool
    order_index: int
    condition: QuestionConditionRead | None = None


class FormSummary(BaseModel):
    id: UUID
    title: str
    description: str | None
    is_open: bool
    deadline: datetime | None
    author_name: str | None
    response_count: int
    created_at: datetime
    updated_at: datetime


class FormRead(BaseModel):
    id: UUID
    owner_user_id: UUID
    title: str
    description: str | None
    is_open: bool
    is_accepting_responses: bool
    deadline: datetime | None
    created_at: datetime
    updated_at: datetime
    questions: list[QuestionRead]


class FormDetailResponse(BaseModel):
    form: FormRead
    is_owner: bool


class FormListResponse(BaseModel):
    forms: list[FormSummary]


class VisibilityRequest(BaseModel):
    answers: dict[str, Any] = Field(default_factory=dict)


class VisibilityResponse(BaseModel):
    visible: list[UUID]
    numbers: dict[str, int]
