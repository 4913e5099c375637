"""Survey invitations: batch sends, reminders, and response tracking."""

from __future__ import annotations

import logging
from uuid import UUID

import httpx
from sqlalchemy import func
from sqlalchemy.orm import Session

from formflow.core.security import generate_invitation_token
from formflow.db.enums import InvitationStatus
from formflow.db.models import Form, SurveyInvitation
from formflow.schemas.invitations import (
    BatchItemError,
    BatchItemResult,
    BatchSendResponse,
    InvitationRecipient,
)
from formflow.services import email_sender, email_service
from formflow.utils.datetime_parsing import days_until, utc_now
from formflow.utils.normalization import is_valid_email, normalize_email, normalize_name

logger = logging.getLogger(__name__)

SEND_FAILED = "Failed to send email"


def list_invitations(db: Session, form_id: UUID) -> list[SurveyInvitation]:
    return (
        db.query(SurveyInvitation)
        .filter(SurveyInvitation.form_id == form_id)
        .order_by(SurveyInvitation.created_at.desc(), SurveyInvitation.email.asc())
        .all()
    )


def get_invitation_stats(db: Session, form_id: UUID) -> dict[str, int]:
    """Invitation counts keyed by status; statuses with no rows are omitted."""
    rows = (
        db.query(SurveyInvitation.status, func.count(SurveyInvitation.id))
        .filter(SurveyInvitation.form_id == form_id)
        .group_by(SurveyInvitation.status)
        .all()
    )
    return {status: count for status, count in rows}


def get_invitation(db: Session, form_id: UUID, invitation_id: UUID) -> SurveyInvitation | None:
    return (
        db.query(SurveyInvitation)
        .filter(SurveyInvitation.id == invitation_id, SurveyInvitation.form_id == form_id)
        .first()
    )


def get_invitation_by_token(db: Session, form_id: UUID, token: str) -> SurveyInvitation | None:
    """Resolve an invitation link token; tokens from other forms never match."""
    return (
        db.query(SurveyInvitation)
        .filter(SurveyInvitation.form_id == form_id, SurveyInvitation.token == token)
        .first()
    )


def mark_responded(invitation: SurveyInvitation) -> None:
    """Flag the invitation as answered. The caller commits."""
    if invitation.status == InvitationStatus.RESPONDED.value:
        return
    invitation.status = InvitationStatus.RESPONDED.value
    invitation.responded_at = utc_now()


async def _deliver(to_email: str, rendered: email_service.RenderedEmail, idempotency_key: str) -> dict:
    try:
        return await email_sender.send_email(
            to_email=to_email,
            subject=rendered.subject,
            html=rendered.html,
            text=rendered.text,
            idempotency_key=idempotency_key,
        )
    except httpx.HTTPError as exc:
        logger.warning("Email transport error for %s", idempotency_key, exc_info=exc)
        return {"success": False, "error": str(exc) or exc.__class__.__name__}


async def send_invitations(
    db: Session,
    form: Form,
    recipients: list[InvitationRecipient],
    message: str | None = None,
) -> BatchSendResponse:
    """
    Create and email one invitation per recipient.

    Each recipient is handled independently: a bad address, a duplicate, or a
    failed send is reported in ``errors`` without aborting the batch. The
    invitation row is kept when its email fails so a reminder can retry it.
    """
    if not recipients:
        raise ValueError("At least one email address is required")

    results: list[BatchItemResult] = []
    errors: list[BatchItemError] = []
    seen: set[str] = set()

    for recipient in recipients:
        raw_email = (recipient.email or "").strip()
        email = normalize_email(raw_email)
        if not email or not is_valid_email(email):
            errors.append(BatchItemError(email=raw_email, error="Invalid email format"))
            continue
        if email in seen:
            errors.append(BatchItemError(email=email, error="Duplicate email in request"))
            continue
        seen.add(email)

        existing = (
            db.query(SurveyInvitation)
            .filter(SurveyInvitation.form_id == form.id, SurveyInvitation.email == email)
            .first()
        )
        if existing:
            if existing.status == InvitationStatus.PENDING.value:
                errors.append(BatchItemError(email=email, error="Invitation already pending"))
            else:
                errors.append(BatchItemError(email=email, error="Already responded"))
            continue

        name = normalize_name(recipient.name)
        invitation = SurveyInvitation(
            form_id=form.id,
            email=email,
            name=name,
            token=generate_invitation_token(),
            status=InvitationStatus.PENDING.value,
            sent_at=utc_now(),
        )
        db.add(invitation)
        db.commit()
        db.refresh(invitation)

        rendered = email_service.build_invitation_email(
            survey_title=form.title,
            survey_url=email_service.build_survey_url(form.id, invitation.token),
            recipient_name=name,
            message=message,
        )
        result = await _deliver(email, rendered, f"invitation:{invitation.id}")

        if result.get("success"):
            results.append(
                BatchItemResult(
                    id=invitation.id,
                    email=email,
                    name=name,
                    status="sent",
                )
            )
        else:
            logger.error("Invitation %s email failed: %s", invitation.id, result.get("error"))
            errors.append(
                BatchItemError(
                    email=email,
                    invitation_id=invitation.id,
                    error=SEND_FAILED,
                    details=result.get("error"),
                )
            )

    logger.info(
        "Invitation batch for form %s: %d sent, %d failed",
        form.id,
        len(results),
        len(errors),
    )
    return BatchSendResponse(
        sent=len(results),
        failed=len(errors),
        results=results,
        errors=errors,
    )


async def send_reminders(
    db: Session,
    form: Form,
    invitation_ids: list[UUID] | None = None,
    all_pending: bool = False,
) -> BatchSendResponse:
    """
    Re-send the survey link to invitees who have not responded.

    Targets every pending invitation when ``all_pending`` is set, otherwise
    the given ids; an id that is unknown, on another form, or already answered
    becomes an error entry.
    """
    if all_pending:
        target_ids = [
            invitation_id
            for (invitation_id,) in db.query(SurveyInvitation.id)
            .filter(
                SurveyInvitation.form_id == form.id,
                SurveyInvitation.status == InvitationStatus.PENDING.value,
            )
            .order_by(SurveyInvitation.created_at.asc())
            .all()
        ]
    else:
        target_ids = list(dict.fromkeys(invitation_ids or []))

    if not target_ids:
        raise ValueError("No invitations to remind")

    days_left = days_until(form.deadline)
    survey_title = form.title

    results: list[BatchItemResult] = []
    errors: list[BatchItemError] = []

    for invitation_id in target_ids:
        invitation = get_invitation(db, form.id, invitation_id)
        if invitation is None or invitation.status != InvitationStatus.PENDING.value:
            errors.append(
                BatchItemError(
                    invitation_id=invitation_id,
                    error="Invitation not found or already responded",
                )
            )
            continue

        rendered = email_service.build_reminder_email(
            survey_title=survey_title,
            survey_url=email_service.build_survey_url(form.id, invitation.token),
            recipient_name=invitation.name,
            days_left=days_left,
        )
        idempotency_key = f"reminder:{invitation.id}:{invitation.reminder_count + 1}"
        result = await _deliver(invitation.email, rendered, idempotency_key)

        if result.get("success"):
            invitation.reminder_count = (invitation.reminder_count or 0) + 1
            invitation.last_reminder_at = utc_now()
            db.commit()
            results.append(
                BatchItemResult(
                    id=invitation.id,
                    email=invitation.email,
                    reminder_count=invitation.reminder_count,
                )
            )
        else:
            logger.error("Reminder for invitation %s failed: %s", invitation.id, result.get("error"))
            errors.append(
                BatchItemError(
                    invitation_id=invitation.id,
                    email=invitation.email,
                    error=SEND_FAILED,
                    details=result.get("error"),
                )
            )

    return BatchSendResponse(
        sent=len(results),
        failed=len(errors),
        results=results,
        errors=errors,
    )


def delete_invitation(db: Session, invitation: SurveyInvitation) -> None:
    db.delete(invitation)
    db.commit()
