"""Response submission and listing."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from formflow.db.models import Answer, Form, Response
from formflow.schemas.responses import AnswerRead, ResponseRead
from formflow.services import invitation_service, visibility_service
from formflow.services.form_service import is_accepting_responses

logger = logging.getLogger(__name__)

CLOSED_MESSAGE = "This survey is closed"


def submit_response(
    db: Session,
    form: Form,
    answers: dict[str, Any],
    invitation_token: str | None = None,
) -> Response:
    """
    Validate and store one submission.

    Answers to questions hidden by their display condition are dropped before
    storage, so the stored response only ever contains visible answers.

    Raises:
        ValueError: form closed, or the answers fail validation
    """
    if not is_accepting_responses(form):
        raise ValueError(CLOSED_MESSAGE)

    questions = list(form.questions)
    errors = visibility_service.validate_answers(questions, answers)
    if errors:
        raise ValueError("; ".join(errors))

    stored = visibility_service.prune_hidden_answers(questions, answers)

    invitation = None
    if invitation_token:
        invitation = invitation_service.get_invitation_by_token(db, form.id, invitation_token)

    response = Response(form_id=form.id, invitation_id=invitation.id if invitation else None)
    response.answers = [
        Answer(question_id=UUID(question_id), value=value)
        for question_id, value in stored.items()
    ]
    db.add(response)
    if invitation is not None:
        invitation_service.mark_responded(invitation)
    db.commit()
    db.refresh(response)

    logger.info(
        "Stored response %s for form %s (%d answers)",
        response.id,
        form.id,
        len(stored),
    )
    return response


def list_responses(db: Session, form: Form) -> list[ResponseRead]:
    """Responses newest first, answers in question order."""
    responses = (
        db.query(Response)
        .options(selectinload(Response.answers))
        .filter(Response.form_id == form.id)
        .order_by(Response.submitted_at.desc(), Response.id.desc())
        .all()
    )
    questions = {q.id: q for q in form.questions}

    results: list[ResponseRead] = []
    for response in responses:
        answers = [a for a in response.answers if a.question_id in questions]
        answers.sort(key=lambda a: questions[a.question_id].order_index)
        results.append(
            ResponseRead(
                id=response.id,
                form_id=response.form_id,
                invitation_id=response.invitation_id,
                submitted_at=response.submitted_at,
                answers=[
                    AnswerRead(
                        question_id=answer.question_id,
                        question_title=questions[answer.question_id].title,
                        question_type=questions[answer.question_id].type,
                        options=questions[answer.question_id].options,
                        value=answer.value,
                    )
                    for answer in answers
                ],
            )
        )
    return results
