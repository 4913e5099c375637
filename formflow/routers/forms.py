"""Form authoring endpoints and live question visibility."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from formflow.core.deps import get_current_user, get_db, get_optional_user, require_csrf_header
from formflow.core.form_access import get_form_or_404, get_owned_form_or_403
from formflow.db.models import User
from formflow.schemas.forms import (
    FormCreate,
    FormDetailResponse,
    FormListResponse,
    FormRead,
    FormUpdate,
    VisibilityRequest,
    VisibilityResponse,
)
from formflow.services import form_service, visibility_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms", tags=["forms"])


@router.get("", response_model=FormListResponse)
def list_forms(
    request: Request,
    mine: bool = Query(False),
    db: Session = Depends(get_db),
) -> FormListResponse:
    """
    List forms.

    Without ``mine`` this is the public board of open forms; with
    ``mine=true`` it is the caller's own forms, open and closed.
    """
    if mine:
        user = get_current_user(request, db)
        return FormListResponse(forms=form_service.list_user_forms(db, user.id))
    return FormListResponse(forms=form_service.list_public_forms(db))


@router.post(
    "",
    response_model=FormRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_form(
    body: FormCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FormRead:
    try:
        form = form_service.create_form(db, user, body)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return form_service.form_to_read(form)


@router.get("/{form_id}", response_model=FormDetailResponse)
def get_form(
    form_id: UUID,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> FormDetailResponse:
    """Form with ordered questions. Public so respondents can load it."""
    form = get_form_or_404(db, form_id)
    return FormDetailResponse(
        form=form_service.form_to_read(form),
        is_owner=bool(user and form.owner_user_id == user.id),
    )


@router.put("/{form_id}", response_model=FormRead, dependencies=[Depends(require_csrf_header)])
def update_form(
    form_id: UUID,
    body: FormUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FormRead:
    form = get_owned_form_or_403(db, form_id, user)
    try:
        form = form_service.update_form(db, form, body)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return form_service.form_to_read(form)


@router.delete("/{form_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_form(
    form_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    form = get_owned_form_or_403(db, form_id, user)
    form_service.delete_form(db, form)
    return Response(status_code=204)


@router.post(
    "/{form_id}/duplicate",
    response_model=FormRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def duplicate_form(
    form_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FormRead:
    form = get_owned_form_or_403(db, form_id, user)
    try:
        copy = form_service.duplicate_form(db, form, user)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return form_service.form_to_read(copy)


@router.post("/{form_id}/visibility", response_model=VisibilityResponse)
def evaluate_visibility(
    form_id: UUID,
    body: VisibilityRequest,
    db: Session = Depends(get_db),
) -> VisibilityResponse:
    """Visible questions and their display numbers for in-progress answers."""
    form = get_form_or_404(db, form_id)
    visible = visibility_service.visible_questions(form.questions, body.answers)
    return VisibilityResponse(
        visible=[question.id for question in visible],
        numbers=visibility_service.question_numbers(form.questions, body.answers),
    )
