"""Form authoring: CRUD, question-set sync, and duplication."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from formflow.db.enums import (
    CHOICE_QUESTION_TYPES,
    NUMERIC_CONDITION_OPERATORS,
    ConditionOperator,
    QuestionType,
)
from formflow.db.models import Form, Question, Response, User
from formflow.schemas.forms import (
    FormCreate,
    FormRead,
    FormSummary,
    FormUpdate,
    QuestionConditionRead,
    QuestionInput,
    QuestionRead,
)
from formflow.services.visibility_service import is_empty_answer
from formflow.utils.datetime_parsing import is_past, normalize_deadline
from formflow.utils.normalization import clean_options

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (copy)"


# =============================================================================
# Queries
# =============================================================================

def _summary_query(db: Session):
    response_counts = (
        db.query(Response.form_id, func.count(Response.id).label("response_count"))
        .group_by(Response.form_id)
        .subquery()
    )
    return (
        db.query(
            Form,
            User.name,
            func.coalesce(response_counts.c.response_count, 0),
        )
        .join(User, User.id == Form.owner_user_id)
        .outerjoin(response_counts, response_counts.c.form_id == Form.id)
    )


def _to_summaries(rows) -> list[FormSummary]:
    return [
        FormSummary(
            id=form.id,
            title=form.title,
            description=form.description,
            is_open=form.is_open,
            deadline=form.deadline,
            author_name=author_name,
            response_count=int(response_count or 0),
            created_at=form.created_at,
            updated_at=form.updated_at,
        )
        for form, author_name, response_count in rows
    ]


def list_public_forms(db: Session) -> list[FormSummary]:
    """Open forms from every author, newest first."""
    rows = (
        _summary_query(db)
        .filter(Form.is_open.is_(True))
        .order_by(Form.created_at.desc())
        .all()
    )
    return _to_summaries(rows)


def list_user_forms(db: Session, user_id: uuid.UUID) -> list[FormSummary]:
    """All of one author's forms, open and closed, newest first."""
    rows = (
        _summary_query(db)
        .filter(Form.owner_user_id == user_id)
        .order_by(Form.created_at.desc())
        .all()
    )
    return _to_summaries(rows)


def get_form(db: Session, form_id: uuid.UUID) -> Form | None:
    return (
        db.query(Form)
        .options(selectinload(Form.questions))
        .filter(Form.id == form_id)
        .first()
    )


def is_accepting_responses(form: Form, now: datetime | None = None) -> bool:
    return bool(form.is_open) and not is_past(form.deadline, now)


# =============================================================================
# Question sync
# =============================================================================

@dataclass
class _ResolvedQuestion:
    question: Question
    target_index: int | None
    operator: str | None
    value: Any


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _coerce_condition_value(target: Question, operator: str, value: Any, position: int) -> Any:
    label = f"Question {position}"
    if is_empty_answer(value):
        raise ValueError(f"{label}: condition value is required")

    if operator in NUMERIC_CONDITION_OPERATORS:
        if target.type != QuestionType.RATING.value:
            raise ValueError(f"{label}: '{operator}' conditions can only target rating questions")
        raw = value[0] if isinstance(value, list) and len(value) == 1 else value
        if isinstance(raw, bool):
            raise ValueError(f"{label}: condition value must be a number")
        try:
            number = float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"{label}: condition value must be a number") from None
        return int(number) if number.is_integer() else number

    values = value if isinstance(value, list) else [value]
    values = [str(v).strip() for v in values if not is_empty_answer(v)]
    if not values:
        raise ValueError(f"{label}: condition value is required")

    if target.type in CHOICE_QUESTION_TYPES:
        allowed = set(target.options or [])
        unknown = [v for v in values if v not in allowed]
        if unknown:
            raise ValueError(
                f"{label}: condition value '{unknown[0]}' is not an option of the referenced question"
            )
        if target.type == QuestionType.MULTIPLE.value:
            return values

    return values[0] if len(values) == 1 else values


def _resolve_reference(
    ref: str, key_positions: dict[str, int], id_positions: dict[str, int]
) -> int | None:
    if ref in key_positions:
        return key_positions[ref]
    try:
        return id_positions.get(str(uuid.UUID(ref)))
    except ValueError:
        return None


def _resolve_question_set(
    inputs: list[QuestionInput], existing: dict[uuid.UUID, Question]
) -> list[_ResolvedQuestion]:
    key_positions: dict[str, int] = {}
    id_positions: dict[str, int] = {}
    for index, item in enumerate(inputs):
        if item.key:
            if item.key in key_positions:
                raise ValueError(f"Duplicate question key: {item.key}")
            key_positions[item.key] = index
        if item.id is not None:
            if item.id not in existing:
                raise ValueError(f"Question {item.id} does not belong to this form")
            if str(item.id) in id_positions:
                raise ValueError(f"Duplicate question id: {item.id}")
            id_positions[str(item.id)] = index

    resolved: list[_ResolvedQuestion] = []
    for index, item in enumerate(inputs):
        position = index + 1
        title = _clean_text(item.title)
        if not title:
            raise ValueError(f"Question {position}: title is required")

        options: list[str] | None = None
        if item.type in CHOICE_QUESTION_TYPES:
            options = clean_options(item.options)
            if not options:
                raise ValueError(f"Question {position}: at least one option is required")

        question = existing.get(item.id) if item.id is not None else None
        if question is None:
            question = Question(id=uuid.uuid4())
        question.type = item.type
        question.title = title
        question.description = _clean_text(item.description)
        question.options = options
        question.required = item.required
        question.order_index = index

        target_index = None
        operator = None
        value = None
        if item.condition is not None:
            target_index = _resolve_reference(
                item.condition.question_key, key_positions, id_positions
            )
            if target_index is None:
                raise ValueError(f"Question {position}: condition references an unknown question")
            if target_index >= index:
                raise ValueError(f"Question {position}: condition must reference an earlier question")
            operator = item.condition.operator or ConditionOperator.EQUALS.value
            value = item.condition.value

        resolved.append(_ResolvedQuestion(question, target_index, operator, value))

    # Condition values are checked against the target's final type and options
    for index, entry in enumerate(resolved):
        if entry.target_index is None:
            continue
        target = resolved[entry.target_index].question
        entry.value = _coerce_condition_value(target, entry.operator, entry.value, index + 1)

    return resolved


def validate_question_inputs(inputs: list[QuestionInput]) -> None:
    """Check a new question set without touching the database."""
    _resolve_question_set(inputs, {})


def sync_questions(db: Session, form: Form, inputs: list[QuestionInput]) -> list[Question]:
    """
    Replace the form's question set with ``inputs``, in the given order.

    Inputs carrying the id of an existing question update that row in place so
    its collected answers survive; other existing questions are deleted.
    A condition may only reference an earlier question in the new ordering.

    Raises:
        ValueError: on any invalid question or condition; nothing is flushed
        for the question set in that case.
    """
    existing = {q.id: q for q in form.questions}
    resolved = _resolve_question_set(inputs, existing)

    # Phase 1: clear conditions so deleted targets never dangle mid-flush
    for question in existing.values():
        question.condition_question_id = None
        question.condition_value = None
    db.flush()

    form.questions = [entry.question for entry in resolved]
    db.flush()

    # Phase 2: every question now has a persisted id
    for entry in resolved:
        question = entry.question
        if entry.target_index is None:
            question.condition_question_id = None
            question.condition_operator = ConditionOperator.EQUALS.value
            question.condition_value = None
        else:
            question.condition_question_id = resolved[entry.target_index].question.id
            question.condition_operator = entry.operator
            question.condition_value = entry.value
    db.flush()

    return form.questions


def questions_to_payloads(questions: list[Question]) -> list[dict[str, Any]]:
    """
    Serialize questions into key-based builder payloads.

    Keys are positional (``q1``, ``q2``...) so the payload can recreate the
    same question set with conditions on a different form.
    """
    ordered = sorted(questions, key=lambda q: q.order_index)
    keys = {q.id: f"q{position}" for position, q in enumerate(ordered, start=1)}
    payloads: list[dict[str, Any]] = []
    for question in ordered:
        payload: dict[str, Any] = {
            "key": keys[question.id],
            "type": question.type,
            "title": question.title,
            "description": question.description,
            "options": list(question.options) if question.options else None,
            "required": question.required,
            "condition": None,
        }
        if question.condition_question_id in keys:
            payload["condition"] = {
                "question_key": keys[question.condition_question_id],
                "operator": question.condition_operator or ConditionOperator.EQUALS.value,
                "value": question.condition_value,
            }
        payloads.append(payload)
    return payloads


# =============================================================================
# Mutations
# =============================================================================

def create_form(db: Session, owner: User, data: FormCreate) -> Form:
    title = _clean_text(data.title)
    if not title:
        raise ValueError("Title is required")

    form = Form(
        owner_user_id=owner.id,
        title=title,
        description=_clean_text(data.description),
        deadline=normalize_deadline(data.deadline),
        is_open=True,
    )
    db.add(form)
    try:
        db.flush()
        sync_questions(db, form, data.questions)
        db.commit()
    except ValueError:
        db.rollback()
        raise
    db.refresh(form)
    logger.info("Created form %s with %d questions", form.id, len(form.questions))
    return form


def update_form(db: Session, form: Form, data: FormUpdate) -> Form:
    """Apply a partial update; explicit nulls clear ``description`` and ``deadline``."""
    fields = data.model_fields_set
    try:
        if "title" in fields and data.title is not None:
            title = _clean_text(data.title)
            if not title:
                raise ValueError("Title is required")
            form.title = title
        if "description" in fields:
            form.description = _clean_text(data.description)
        if "deadline" in fields:
            form.deadline = normalize_deadline(data.deadline)
        if "is_open" in fields and data.is_open is not None:
            form.is_open = data.is_open
        if "questions" in fields and data.questions is not None:
            sync_questions(db, form, data.questions)
        db.commit()
    except ValueError:
        db.rollback()
        raise
    db.refresh(form)
    return form


def delete_form(db: Session, form: Form) -> None:
    form_id = form.id
    db.delete(form)
    db.commit()
    logger.info("Deleted form %s", form_id)


def duplicate_form(db: Session, form: Form, owner: User) -> Form:
    """Copy a form with its questions; the copy starts closed and empty."""
    data = FormCreate(
        title=f"{form.title}{COPY_SUFFIX}"[:200],
        description=form.description,
        deadline=form.deadline,
        questions=[QuestionInput(**payload) for payload in questions_to_payloads(form.questions)],
    )
    copy = create_form(db, owner, data)
    copy.is_open = False
    db.commit()
    db.refresh(copy)
    logger.info("Duplicated form %s as %s", form.id, copy.id)
    return copy


# =============================================================================
# Read models
# =============================================================================

def question_to_read(question: Question) -> QuestionRead:
    condition = None
    if question.condition_question_id is not None:
        condition = QuestionConditionRead(
            question_id=question.condition_question_id,
            operator=question.condition_operator or ConditionOperator.EQUALS.value,
            value=question.condition_value,
        )
    return QuestionRead(
        id=question.id,
        type=question.type,
        title=question.title,
        description=question.description,
        options=question.options,
        required=question.required,
        order_index=question.order_index,
        condition=condition,
    )


def form_to_read(form: Form) -> FormRead:
    return FormRead(
        id=form.id,
        owner_user_id=form.owner_user_id,
        title=form.title,
        description=form.description,
        is_open=form.is_open,
        is_accepting_responses=is_accepting_responses(form),
        deadline=form.deadline,
        created_at=form.created_at,
        updated_at=form.updated_at,
        questions=[question_to_read(q) for q in sorted(form.questions, key=lambda q: q.order_index)],
    )
