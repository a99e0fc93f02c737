"""Outbound HTTP with retry/backoff for Mailgun and the AI providers."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential delay for the given 0-based attempt, capped, plus up to 50% jitter."""
    delay = min(max_delay, base_delay * (2**attempt))
    return delay + random.uniform(0, delay / 2) if delay else 0.0


async def request_with_retries(
    request_fn: Callable[[], Awaitable[httpx.Response]],
    *,
    label: str = "http",
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
) -> httpx.Response:
    """
    Call request_fn until it returns a non-retryable response or attempts run out.

    The final response is returned whatever its status; a transport error on
    the final attempt propagates.
    """
    attempt = 0
    while True:
        final = attempt >= max_attempts - 1
        try:
            response = await request_fn()
        except httpx.RequestError as exc:
            if final:
                raise
            logger.warning(
                f"{label} request failed, retrying",
                extra={"attempt": attempt + 1, "error_type": type(exc).__name__},
            )
        else:
            if final or response.status_code not in RETRYABLE_STATUSES:
                return response
            logger.warning(
                f"{label} returned {response.status_code}, retrying",
                extra={"attempt": attempt + 1},
            )
        await asyncio.sleep(backoff_delay(attempt, base_delay, max_delay))
        attempt += 1
