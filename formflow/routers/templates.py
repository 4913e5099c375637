"""Question-set template library endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from formflow.core.deps import get_current_user, get_db, get_optional_user, require_csrf_header
from formflow.db.models import User
from formflow.schemas.forms import FormRead
from formflow.schemas.templates import (
    TemplateCreate,
    TemplateListResponse,
    TemplateRead,
    UseTemplateRequest,
)
from formflow.services import form_service, template_service

router = APIRouter(prefix="/templates", tags=["templates"])


def _get_visible_template(db: Session, template_id: UUID, user: User | None):
    template = template_service.get_template(db, template_id)
    if not template or not template_service.can_view(template, user.id if user else None):
        raise HTTPException(status_code=404, detail="Template not found")
    return template


@router.get("", response_model=TemplateListResponse)
def list_templates(
    category: str | None = Query(None),
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> TemplateListResponse:
    """Presets plus, when signed in, the caller's own templates."""
    templates = template_service.list_templates(db, user.id if user else None, category)
    return TemplateListResponse(templates=[TemplateRead.model_validate(t) for t in templates])


@router.get("/categories", response_model=list[str])
def list_categories() -> list[str]:
    return template_service.list_categories()


@router.get("/{template_id}", response_model=TemplateRead)
def get_template(
    template_id: UUID,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return _get_visible_template(db, template_id, user)


@router.post(
    "",
    response_model=TemplateRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_template(
    body: TemplateCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return template_service.create_template(db, user, body)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/{template_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_template(
    template_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    template = template_service.get_template(db, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    try:
        template_service.delete_template(db, template, user.id)
    except template_service.TemplatePermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return Response(status_code=204)


@router.post(
    "/{template_id}/use",
    response_model=FormRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def use_template(
    template_id: UUID,
    body: UseTemplateRequest | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FormRead:
    """Start a new form from a template's questions."""
    template = _get_visible_template(db, template_id, user)
    body = body or UseTemplateRequest()
    try:
        form = template_service.create_form_from_template(
            db, template, user, title=body.title, description=body.description
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return form_service.form_to_read(form)
