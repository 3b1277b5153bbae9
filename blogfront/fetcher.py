"""HTTP GET with retry and exponential backoff for rate limits and network errors."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Awaitable, Callable, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclasses.dataclass(frozen=True)
class RetryPolicy:
    """How many times to retry, and after which responses.

    Only rate limiting (429 by default) and transport errors are transient;
    every other status is handed back on the first attempt.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    retry_statuses: frozenset[int] = frozenset({429})

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1`` (0-based)."""

        return self.base_delay * (2 ** attempt)

    def is_retryable(self, status_code: int) -> bool:
        return status_code in self.retry_statuses


DEFAULT_RETRY_POLICY = RetryPolicy()


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Optional[Mapping[str, object]] = None,
    headers: Optional[Mapping[str, str]] = None,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    sleep: Sleep = asyncio.sleep,
) -> httpx.Response:
    """GET ``url`` and retry transient failures per ``policy``.

    Returns the last response once retries are exhausted on a retryable
    status. Re-raises the last :class:`httpx.TransportError` once retries
    are exhausted on network failures.
    """

    attempt = 0
    while True:
        retries_left = policy.max_retries - attempt
        try:
            response = await client.get(url, params=params, headers=headers)
        except httpx.TransportError as exc:
            if retries_left <= 0:
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "Fetch error for %s (%s). Retrying in %.2fs. Retries left: %d",
                url, exc, delay, retries_left,
            )
        else:
            if not policy.is_retryable(response.status_code) or retries_left <= 0:
                return response
            delay = policy.delay_for(attempt)
            logger.warning(
                "Rate limited (%d) on %s. Retrying in %.2fs. Retries left: %d",
                response.status_code, url, delay, retries_left,
            )
        await sleep(delay)
        attempt += 1
