"""Retry with exponential backoff for durable store operations."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy.exc import DisconnectionError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from uw_tracker.core.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

HTTP_TOO_MANY_REQUESTS = 429
HTTP_INTERNAL_SERVER_ERROR = 500
HTTP_VERSION_CEILING = 600

_TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    OSError,
    OperationalError,
    DisconnectionError,
    PoolTimeoutError,
)


@dataclass(frozen=True)
class RetryConfig:
    """Backoff parameters; jitter adds up to 20% of each delay."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    jitter_ratio: float = 0.2

    @classmethod
    def from_settings(cls) -> RetryConfig:
        return cls(
            max_attempts=settings.store_retry_max_attempts,
            base_delay=settings.store_retry_base_delay_seconds,
            max_delay=settings.store_retry_max_delay_seconds,
            backoff_multiplier=settings.store_retry_backoff_multiplier,
        )

    def delay_for(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        """Return the delay after the zero-indexed ``attempt``."""
        delay = self.base_delay * (self.backoff_multiplier**attempt)
        jitter = delay * rand() * self.jitter_ratio
        return min(delay + jitter, self.max_delay)


def is_retryable_error(error: BaseException) -> bool:
    """Return True for network, timeout, rate-limit and server-side failures."""
    status = getattr(error, "status", None) or getattr(error, "status_code", None)
    if isinstance(status, int):
        return status == HTTP_TOO_MANY_REQUESTS or (
            HTTP_INTERNAL_SERVER_ERROR <= status < HTTP_VERSION_CEILING
        )
    return isinstance(error, _TRANSIENT_ERRORS)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    config: RetryConfig | None = None,
    should_retry: Callable[[BaseException], bool] = is_retryable_error,
    on_retry: Callable[[int, float, BaseException], Any] | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    description: str = "operation",
) -> T:
    """Run ``operation`` until it succeeds or retries are exhausted.

    Non-retryable errors propagate immediately. After the final attempt the
    last error is re-raised unchanged.
    """
    config = config or RetryConfig.from_settings()
    for attempt in range(config.max_attempts):
        try:
            return await operation()
        except Exception as exc:
            if not should_retry(exc) or attempt >= config.max_attempts - 1:
                raise
            delay = config.delay_for(attempt)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                description,
                attempt + 1,
                config.max_attempts,
                delay,
                exc,
            )
            if on_retry is not None:
                on_retry(attempt + 1, delay, exc)
            await sleep(delay)
    raise RuntimeError("with_retry requires max_attempts >= 1")
