"""Results aggregation for survey responses."""

from __future__ import annotations

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from formflow.db.enums import RATING_MAX, RATING_MIN, QuestionType
from formflow.db.models import Form, Response
from formflow.schemas.results import FormResultsRead, QuestionSummaryRead
from formflow.services.visibility_service import QuestionLike, is_empty_answer


def _percentages(counts: dict[str, int], total: int) -> dict[str, float]:
    if total == 0:
        return {key: 0.0 for key in counts}
    return {key: count / total * 100 for key, count in counts.items()}


def _seed_counts(question: QuestionLike) -> dict[str, int]:
    if question.type == QuestionType.RATING.value:
        return {str(score): 0 for score in range(RATING_MIN, RATING_MAX + 1)}
    return {option: 0 for option in (question.options or [])}


def summarize_question(
    question: QuestionLike, answer_maps: Sequence[dict[str, Any]]
) -> QuestionSummaryRead:
    """
    Aggregate one question across responses.

    Only responses with a non-empty answer for the question count toward
    ``total_responses``; percentages use that as the denominator, so
    multiple-choice percentages can sum past 100.
    """
    key = str(question.id)
    answered = [m[key] for m in answer_maps if not is_empty_answer(m.get(key))]
    total = len(answered)

    summary = QuestionSummaryRead(
        id=question.id,
        title=question.title,
        type=question.type,
        options=question.options,
        total_responses=total,
    )

    if question.type in (QuestionType.SHORT_TEXT.value, QuestionType.LONG_TEXT.value):
        summary.text_answers = [str(value) for value in answered]
        return summary

    counts = _seed_counts(question)
    if question.type == QuestionType.MULTIPLE.value:
        for value in answered:
            selected = value if isinstance(value, list) else [value]
            for item in dict.fromkeys(str(v) for v in selected):
                counts[item] = counts.get(item, 0) + 1
    else:
        for value in answered:
            # Ratings may be stored as int or float, keyed by their integer text
            if question.type == QuestionType.RATING.value and isinstance(value, (int, float)):
                item = str(int(value))
            else:
                item = str(value)
            counts[item] = counts.get(item, 0) + 1

    summary.counts = counts
    summary.percentages = _percentages(counts, total)

    if question.type == QuestionType.RATING.value and total:
        numeric = [
            float(v)
            for v in answered
            if isinstance(v, (int, float)) and not isinstance(v, bool)
        ]
        if numeric:
            summary.average = round(sum(numeric) / len(numeric), 2)

    return summary


def summarize(
    questions: Sequence[QuestionLike], answer_maps: Sequence[dict[str, Any]]
) -> list[QuestionSummaryRead]:
    """Summaries for every question in form order."""
    ordered = sorted(questions, key=lambda q: q.order_index)
    return [summarize_question(question, answer_maps) for question in ordered]


def load_answer_maps(db: Session, form_id: UUID) -> list[dict[str, Any]]:
    """Answer maps ``{question_id: value}`` for a form's responses, oldest first."""
    responses = (
        db.query(Response)
        .options(selectinload(Response.answers))
        .filter(Response.form_id == form_id)
        .order_by(Response.submitted_at.asc(), Response.id.asc())
        .all()
    )
    return [
        {str(answer.question_id): answer.value for answer in response.answers}
        for response in responses
    ]


def get_form_results(db: Session, form: Form) -> FormResultsRead:
    answer_maps = load_answer_maps(db, form.id)
    return FormResultsRead(
        form_id=form.id,
        title=form.title,
        response_count=len(answer_maps),
        questions=summarize(form.questions, answer_maps),
    )
