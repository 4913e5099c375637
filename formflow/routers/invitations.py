"""Survey invitation endpoints: batch invites, reminders, and removal."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from formflow.core.deps import get_current_user, get_db, require_csrf_header
from formflow.core.form_access import get_owned_form_or_403
from formflow.db.models import User
from formflow.schemas.invitations import (
    BatchSendResponse,
    InvitationCreate,
    InvitationListResponse,
    InvitationRead,
    ReminderRequest,
)
from formflow.services import invitation_service

router = APIRouter(prefix="/forms/{form_id}/invitations", tags=["invitations"])


@router.get("", response_model=InvitationListResponse)
def list_invitations(
    form_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> InvitationListResponse:
    """Invitations newest first plus counts per status."""
    form = get_owned_form_or_403(db, form_id, user)
    invitations = invitation_service.list_invitations(db, form.id)
    return InvitationListResponse(
        invitations=[InvitationRead.model_validate(inv) for inv in invitations],
        stats=invitation_service.get_invitation_stats(db, form.id),
    )


@router.post("", response_model=BatchSendResponse, dependencies=[Depends(require_csrf_header)])
async def send_invitations(
    form_id: UUID,
    body: InvitationCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BatchSendResponse:
    """
    Invite recipients by email.

    Per-recipient problems (bad address, duplicate, failed send) are listed in
    ``errors``; the request itself only fails when no recipients are given.
    """
    form = get_owned_form_or_403(db, form_id, user)
    try:
        return await invitation_service.send_invitations(db, form, body.emails, body.message)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/remind", response_model=BatchSendResponse, dependencies=[Depends(require_csrf_header)])
async def send_reminders(
    form_id: UUID,
    body: ReminderRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BatchSendResponse:
    form = get_owned_form_or_403(db, form_id, user)
    try:
        return await invitation_service.send_reminders(
            db,
            form,
            invitation_ids=body.invitation_ids,
            all_pending=body.all_pending,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete(
    "/{invitation_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_invitation(
    form_id: UUID,
    invitation_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    form = get_owned_form_or_403(db, form_id, user)
    invitation = invitation_service.get_invitation(db, form.id, invitation_id)
    if not invitation:
        raise HTTPException(status_code=404, detail="Invitation not found")
    invitation_service.delete_invitation(db, invitation)
    return Response(status_code=204)
