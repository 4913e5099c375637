"""Schemas for aggregated survey results."""

from uuid import UUID

from pydantic import BaseModel, Field


class QuestionSummaryRead(BaseModel):
    id: UUID
    title: str
    type: str
    options: list[str] | None = None
    total_responses: int
    counts: dict[str, int] = Field(default_factory=dict)
    percentages: dict[str, float] = Field(default_factory=dict)
    average: float | None = None
    text_answers: list[str] = Field(default_factory=list)


class FormResultsRead(BaseModel):
    form_id: UUID
    title: str
    response_count: int
    questions: list[QuestionSummaryRead]
