"""Retry helper for flaky upstream HTTP calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({503})


async def send_with_retry(
    send: Callable[[], Awaitable[httpx.Response]],
    *,
    operation_name: str,
    attempts: int = 3,
    base_delay_seconds: float = 2.0,
    retry_statuses: frozenset[int] = RETRYABLE_STATUS_CODES,
    log_context: Mapping[str, Any] | None = None,
) -> httpx.Response:
    """Send a request, retrying on 503 and transport errors with linear backoff.

    The delay before attempt ``n + 1`` is ``base_delay_seconds * n``. The last
    response is returned as-is when every attempt came back retryable, so the
    caller decides how to surface it; the last transport error is re-raised.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    context = dict(log_context or {})
    for attempt in range(1, attempts + 1):
        try:
            response = await send()
        except httpx.TransportError as exc:
            if attempt == attempts:
                raise
            logger.warning(
                "Upstream transport error; retrying",
                extra={
                    **context,
                    "operation": operation_name,
                    "attempt": attempt,
                    "max_attempts": attempts,
                    "error": str(exc),
                },
            )
        else:
            if response.status_code not in retry_statuses or attempt == attempts:
                return response
            logger.warning(
                "Upstream unavailable; retrying",
                extra={
                    **context,
                    "operation": operation_name,
                    "attempt": attempt,
                    "max_attempts": attempts,
                    "status": response.status_code,
                },
            )
        await asyncio.sleep(base_delay_seconds * attempt)

    raise RuntimeError(f"Retry loop exhausted unexpectedly for operation: {operation_name}")
