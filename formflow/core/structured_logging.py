"""Log context helpers.

Log records carry identifiers only: never answers, email addresses,
passwords, or tokens.
"""

from typing import Any

from fastapi import Request

SAFE_CONTEXT_KEYS = ("request_id", "user_id", "form_id", "invitation_id", "route", "method")


def build_log_context(request: Request | None = None, **identifiers: Any) -> dict[str, Any]:
    """
    Build the ``extra=`` dict for a log call.

    Request id, user id, path and method are read from ``request`` when given;
    explicit keyword identifiers override them. Keys outside
    ``SAFE_CONTEXT_KEYS`` are dropped.
    """
    context: dict[str, Any] = {}
    if request is not None:
        context["request_id"] = getattr(request.state, "request_id", None)
        context["user_id"] = getattr(request.state, "user_id", None)
        context["route"] = request.url.path
        context["method"] = request.method
    for key, value in identifiers.items():
        if key in SAFE_CONTEXT_KEYS:
            context[key] = value
    return {key: str(value) for key, value in context.items() if value}
