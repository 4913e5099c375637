"""Rate limiting configuration for the FormFlow API."""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from formflow.core.config import settings

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
DEFAULT_LIMITS = (
    []
    if IS_TESTING or settings.RATE_LIMIT_API <= 0
    else [f"{settings.RATE_LIMIT_API}/minute"]
)

# Single-process deployment: counters live in memory
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    default_limits=DEFAULT_LIMITS,
    enabled=not IS_TESTING,
)


def auth_limit() -> str:
    return f"{settings.RATE_LIMIT_AUTH}/minute"


def submit_limit() -> str:
    return f"{settings.RATE_LIMIT_SUBMIT}/minute"
