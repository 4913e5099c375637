"""Response submission, listing, results, and exports."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from formflow.core.deps import get_current_user, get_db
from formflow.core.form_access import get_form_or_404, get_owned_form_or_403
from formflow.core.rate_limit import limiter, submit_limit
from formflow.core.structured_logging import build_log_context
from formflow.db.models import User
from formflow.schemas.responses import ResponseListResponse, ResponseSubmit, ResponseSubmitResult
from formflow.schemas.results import FormResultsRead
from formflow.services import export_service, response_service, results_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms", tags=["responses"])


@router.post("/{form_id}/submit", response_model=ResponseSubmitResult, status_code=201)
@limiter.limit(submit_limit)
def submit_response(
    request: Request,
    form_id: UUID,
    body: ResponseSubmit,
    db: Session = Depends(get_db),
) -> ResponseSubmitResult:
    """
    Submit answers to a form.

    Public: respondents need no account. Answers to hidden questions are
    discarded; an ``invitation_token`` marks the matching invitation answered.
    """
    form = get_form_or_404(db, form_id)
    try:
        response = response_service.submit_response(
            db, form, body.answers, invitation_token=body.invitation_token
        )
    except ValueError as exc:
        logger.info(
            "Rejected submission",
            extra=build_log_context(request, form_id=form_id),
        )
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ResponseSubmitResult(message="Response submitted", response_id=response.id)


@router.get("/{form_id}/responses", response_model=ResponseListResponse)
def list_responses(
    form_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ResponseListResponse:
    form = get_owned_form_or_403(db, form_id, user)
    responses = response_service.list_responses(db, form)
    return ResponseListResponse(responses=responses, total=len(responses))


@router.get("/{form_id}/results", response_model=FormResultsRead)
def get_results(
    form_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FormResultsRead:
    """Per-question aggregates in form order."""
    form = get_owned_form_or_403(db, form_id, user)
    return results_service.get_form_results(db, form)


@router.get("/{form_id}/export/csv")
def export_csv(
    form_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    form = get_owned_form_or_403(db, form_id, user)
    content = export_service.build_responses_csv(db, form)
    filename = export_service.csv_filename(form)
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{form_id}/export/pdf")
def export_pdf(
    form_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    form = get_owned_form_or_403(db, form_id, user)
    results = results_service.get_form_results(db, form)
    pdf_bytes = export_service.build_results_pdf(results)
    filename = export_service.pdf_filename(form)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
