"""Conditional question visibility and answer validation.

Every function here is pure: it takes a form's questions (ORM ``Question``
rows or anything exposing the same attributes) and an answer map keyed by
question id string, and never touches the database.

Visibility is evaluated in a single forward pass over the questions in form
order. A question whose condition targets a hidden question is hidden too,
because a hidden question's answer is treated as absent.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol, Sequence
from uuid import UUID

from formflow.db.enums import (
    RATING_MAX,
    RATING_MIN,
    ConditionOperator,
    QuestionType,
)


class QuestionLike(Protocol):
    id: UUID
    type: str
    title: str
    options: list[str] | None
    required: bool
    order_index: int
    condition_question_id: UUID | None
    condition_operator: str | None
    condition_value: Any


def is_empty_answer(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _expected_values(expected: Any) -> list[Any]:
    # Multiple-choice targets store the expected value wrapped in a list
    if isinstance(expected, (list, tuple)):
        return list(expected)
    return [expected]


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _values_equal(actual: Any, expected: str) -> bool:
    # Whole-number ratings arrive as 4, 4.0 or "4.0"; match them numerically
    if str(actual) == expected:
        return True
    actual_number = _to_number(actual)
    expected_number = _to_number(expected)
    return actual_number is not None and actual_number == expected_number


def evaluate_condition(operator: str | None, expected: Any, answer: Any) -> bool:
    """Return True when ``answer`` satisfies the condition."""
    if is_empty_answer(answer):
        return False

    operator = operator or ConditionOperator.EQUALS.value
    expected_values = [str(v) for v in _expected_values(expected) if v is not None]

    if operator == ConditionOperator.EQUALS.value:
        selected = answer if isinstance(answer, (list, tuple)) else [answer]
        return any(
            _values_equal(item, value) for item in selected for value in expected_values
        )

    if operator == ConditionOperator.CONTAINS.value:
        if isinstance(answer, (list, tuple)):
            selected = {str(item) for item in answer}
            return any(value in selected for value in expected_values)
        text = str(answer)
        return any(value in text for value in expected_values)

    if operator in (ConditionOperator.GREATER_THAN.value, ConditionOperator.LESS_THAN.value):
        actual = _to_number(answer)
        threshold = _to_number(expected_values[0]) if expected_values else None
        if actual is None or threshold is None:
            return False
        if operator == ConditionOperator.GREATER_THAN.value:
            return actual > threshold
        return actual < threshold

    return True


def _ordered(questions: Iterable[QuestionLike]) -> list[QuestionLike]:
    return sorted(questions, key=lambda q: q.order_index)


def is_visible(
    question: QuestionLike,
    answers: dict[str, Any],
    visible_ids: set[UUID],
    known_ids: set[UUID] | None = None,
) -> bool:
    """
    Decide one question's visibility given the already-visible earlier questions.

    A condition pointing at a question outside ``known_ids`` is ignored.
    """
    target_id = question.condition_question_id
    if target_id is None:
        return True
    if known_ids is not None and target_id not in known_ids:
        return True
    if target_id not in visible_ids:
        return False
    return evaluate_condition(
        question.condition_operator,
        question.condition_value,
        answers.get(str(target_id)),
    )


def visible_questions(
    questions: Iterable[QuestionLike], answers: dict[str, Any]
) -> list[QuestionLike]:
    """Visible questions in form order for the given answers."""
    ordered = _ordered(questions)
    known_ids = {q.id for q in ordered}
    visible_ids: set[UUID] = set()
    visible: list[QuestionLike] = []

    for question in ordered:
        if is_visible(question, answers, visible_ids, known_ids):
            visible_ids.add(question.id)
            visible.append(question)

    return visible


def question_numbers(
    questions: Iterable[QuestionLike], answers: dict[str, Any]
) -> dict[str, int]:
    """Number visible questions 1..n in form order."""
    return {
        str(question.id): position
        for position, question in enumerate(visible_questions(questions, answers), start=1)
    }


def _validate_value(question: QuestionLike, value: Any) -> str | None:
    qtype = question.type
    label = question.title

    if qtype in (QuestionType.SHORT_TEXT.value, QuestionType.LONG_TEXT.value):
        if not isinstance(value, str):
            return f"Answer to '{label}' must be text"
        return None

    if qtype == QuestionType.SINGLE.value:
        if not isinstance(value, str):
            return f"Answer to '{label}' must be a single option"
        if question.options and value not in question.options:
            return f"Invalid option for '{label}'"
        return None

    if qtype == QuestionType.MULTIPLE.value:
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            return f"Answer to '{label}' must be a list of options"
        if question.options:
            allowed = set(question.options)
            if any(item not in allowed for item in value):
                return f"Invalid option for '{label}'"
        return None

    if qtype == QuestionType.RATING.value:
        number = _to_number(value)
        if number is None or not number.is_integer():
            return f"Rating for '{label}' must be a whole number"
        if not RATING_MIN <= number <= RATING_MAX:
            return f"Rating for '{label}' must be between {RATING_MIN} and {RATING_MAX}"
        return None

    return f"Unsupported question type: {qtype}"


def validate_answers(
    questions: Sequence[QuestionLike], answers: dict[str, Any]
) -> list[str]:
    """
    Validate a submission against the visible question set.

    Hidden questions are never required and their answers are not checked.
    """
    errors: list[str] = []
    if not isinstance(answers, dict):
        return ["Answers must be an object"]

    known = {str(q.id) for q in questions}
    for key in answers:
        if key not in known:
            errors.append(f"Unknown question: {key}")

    for question in visible_questions(questions, answers):
        value = answers.get(str(question.id))
        if is_empty_answer(value):
            if question.required:
                errors.append(f"Missing required answer: {question.title}")
            continue
        error = _validate_value(question, value)
        if error:
            errors.append(error)

    return errors


def normalize_value(question: QuestionLike, value: Any) -> Any:
    """Canonical storage form: int ratings, de-duplicated option lists."""
    if question.type == QuestionType.RATING.value:
        return int(_to_number(value))
    if question.type == QuestionType.MULTIPLE.value:
        return list(dict.fromkeys(value))
    return value


def prune_hidden_answers(
    questions: Sequence[QuestionLike], answers: dict[str, Any]
) -> dict[str, Any]:
    """Keep only non-empty answers to visible questions, normalized for storage."""
    pruned: dict[str, Any] = {}
    for question in visible_questions(questions, answers):
        key = str(question.id)
        value = answers.get(key)
        if is_empty_answer(value):
            continue
        pruned[key] = normalize_value(question, value)
    return pruned
