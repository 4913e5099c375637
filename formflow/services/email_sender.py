"""Email transport selection.

``console`` (the default) logs the message and reports success, which keeps
local development and tests free of network calls. ``resend`` posts to the
Resend HTTP API.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import httpx

from formflow.core.config import settings
from formflow.services.http_service import DEFAULT_RETRY_STATUSES, request_with_retries

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_MAX_ATTEMPTS = 3
RESEND_RETRY_BASE_DELAY = 0.5
RESEND_RETRY_MAX_DELAY = 4.0
RESEND_TIMEOUT_SECONDS = 20.0

CONSOLE_BACKEND = "console"
RESEND_BACKEND = "resend"


def _error_detail(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        return data.get("message") or data.get("error")
    return None


def _resend_result(response: httpx.Response) -> dict[str, Any]:
    status = response.status_code
    if response.is_success:
        body = response.json()
        message_id = body.get("id") if isinstance(body, dict) else None
        if not message_id:
            return {"success": False, "error": "Resend API returned success without message id"}
        return {"success": True, "message_id": str(message_id)}
    # Idempotency replay: Resend already accepted this message
    if status == 409:
        return {"success": True}
    detail = _error_detail(response)
    suffix = f" ({detail})" if detail else ""
    return {"success": False, "error": f"Resend API error: {status}{suffix}"}


async def _send_console_email(*, to_email: str, subject: str) -> dict[str, Any]:
    message_id = f"console-{uuid.uuid4().hex}"
    logger.info("Console email backend: %s queued (subject=%r)", message_id, subject)
    return {"success": True, "message_id": message_id}


async def _send_resend_email(
    *,
    to_email: str,
    subject: str,
    html: str,
    text: str | None,
    idempotency_key: str | None,
) -> dict[str, Any]:
    api_key = settings.RESEND_API_KEY
    from_email = (settings.EMAIL_FROM or "").strip()
    if not api_key:
        return {"success": False, "error": "Email sender not configured (missing RESEND_API_KEY)"}
    if not from_email:
        return {"success": False, "error": "Email sender not configured (missing EMAIL_FROM)"}

    payload: dict[str, object] = {
        "from": from_email,
        "to": [to_email],
        "subject": subject,
        "html": html,
    }
    if text:
        payload["text"] = text

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    if idempotency_key:
        headers["Idempotency-Key"] = idempotency_key

    async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:
        response = await request_with_retries(
            lambda: client.post(RESEND_SEND_URL, headers=headers, json=payload),
            max_attempts=RESEND_MAX_ATTEMPTS,
            base_delay=RESEND_RETRY_BASE_DELAY,
            max_delay=RESEND_RETRY_MAX_DELAY,
            retry_statuses=DEFAULT_RETRY_STATUSES,
        )

    return _resend_result(response)


async def send_email(
    *,
    to_email: str,
    subject: str,
    html: str,
    text: str | None = None,
    idempotency_key: str | None = None,
) -> dict[str, Any]:
    """
    Send one email through the configured backend.

    Returns:
        {"success": True, "message_id": "..."} or {"success": False, "error": "..."}
    """
    backend = (settings.EMAIL_BACKEND or CONSOLE_BACKEND).lower()
    if backend == RESEND_BACKEND:
        return await _send_resend_email(
            to_email=to_email,
            subject=subject,
            html=html,
            text=text,
            idempotency_key=idempotency_key,
        )
    if backend == CONSOLE_BACKEND:
        return await _send_console_email(to_email=to_email, subject=subject)
    return {"success": False, "error": f"Unknown email backend: {backend}"}
