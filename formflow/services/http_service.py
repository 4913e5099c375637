"""HTTP helpers with retry/backoff for outbound integrations."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

DEFAULT_RETRY_STATUSES = {429, 500, 502, 503, 504}


def _backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    delay = min(max_delay, base_delay * (2**attempt))
    if delay:
        delay = delay + random.uniform(0, delay / 2)
    return delay


def _retry_after(response: httpx.Response, max_delay: float) -> float | None:
    """Seconds from a numeric Retry-After header, capped at ``max_delay``."""
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return max(0.0, min(seconds, max_delay))


async def request_with_retries(
    request_fn: Callable[[], Awaitable[httpx.Response]],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    retry_statuses: set[int] | None = None,
) -> httpx.Response:
    """
    Execute an HTTP request with exponential backoff retries.

    Transport errors are re-raised after the last attempt; a retryable status
    on the last attempt is returned to the caller as-is. A numeric Retry-After
    header (Resend sends one with 429) replaces the computed backoff.
    """
    statuses = retry_statuses or DEFAULT_RETRY_STATUSES

    for attempt in range(max_attempts):
        last_attempt = attempt >= max_attempts - 1
        try:
            response = await request_fn()
        except httpx.RequestError as exc:
            if last_attempt:
                raise
            logger.warning("HTTP request failed, retrying", exc_info=exc)
            delay = _backoff_delay(attempt, base_delay, max_delay)
            if delay:
                await asyncio.sleep(delay)
            continue

        if response.status_code in statuses and not last_attempt:
            logger.warning("HTTP request returned %s, retrying", response.status_code)
            delay = _retry_after(response, max_delay)
            if delay is None:
                delay = _backoff_delay(attempt, base_delay, max_delay)
            if delay:
                await asyncio.sleep(delay)
            continue

        return response

    return response
