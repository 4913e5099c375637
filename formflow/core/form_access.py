"""Form lookup helpers with ownership checks for route handlers."""

from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from formflow.db.models import Form, User
from formflow.services import form_service


def get_form_or_404(db: Session, form_id: UUID) -> Form:
    form = form_service.get_form(db, form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


def get_owned_form_or_403(db: Session, form_id: UUID, user: User) -> Form:
    """
    Load a form the caller owns.

    Raises:
        HTTPException 404: form does not exist
        HTTPException 403: form belongs to someone else
    """
    form = get_form_or_404(db, form_id)
    if form.owner_user_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to access this form")
    return form
