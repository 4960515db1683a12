# src/llm/retry.py — v1
"""Bounded exponential-backoff retry around the HTTP gate.

Only rate limiting (429) and unavailability (503) are retried. Everything
else fails fast:
  - transport errors (timeout, unreachable) propagate on the first attempt;
  - 2xx, 401, 403 and any other status are returned to the interpreter,
    which classifies them.
Worst-case latency is therefore bounded by
max_attempts * timeout + sum(base_delay * factor**a for a < max_attempts - 1).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable

from cinearchive.core.errors import ExhaustedRetries
from cinearchive.core.models import RawResponse

if TYPE_CHECKING:
    from cinearchive.config.settings import Settings

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({429, 503})

RequestFactory = Callable[[], Awaitable[RawResponse]]
Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryConfig:
    """Attempt budget and backoff curve."""

    max_attempts: int = 3
    base_delay_s: float = 1.0
    backoff_factor: float = 2.0

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryConfig:
        return cls(
            max_attempts=settings.max_attempts,
            base_delay_s=settings.retry_base_delay_s,
            backoff_factor=settings.retry_backoff_factor,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay after a retryable failure on 0-based attempt."""
        return self.base_delay_s * (self.backoff_factor ** attempt)


class RetryCoordinator:
    """Drives a request factory until success, a fatal status or the budget runs out."""

    def __init__(self, config: RetryConfig | None = None, sleep: Sleeper = asyncio.sleep):
        self.config = config or RetryConfig()
        self._sleep = sleep

    async def execute(
        self,
        request_factory: RequestFactory,
        max_attempts: int | None = None,
    ) -> RawResponse:
        """Run the factory with the retry policy.

        Args:
            request_factory: Zero-arg coroutine function issuing one gate call.
            max_attempts: Overrides the configured attempt budget.

        Returns:
            The first non-retryable response.

        Raises:
            NetworkTimeout, NetworkUnreachable: From the gate, never retried.
            ExhaustedRetries: Every attempt answered 429 or 503.
        """
        attempts = max(1, max_attempts or self.config.max_attempts)
        attempt = 0

        while True:
            last = await request_factory()
            if last.status_code not in RETRYABLE_STATUSES:
                if attempt:
                    logger.info(
                        "Attempt %d/%d answered %d", attempt + 1, attempts, last.status_code,
                    )
                return last
            if attempt >= attempts - 1:
                break

            delay = self.config.delay_for(attempt)
            logger.warning(
                "Service busy (%d) on attempt %d/%d, retrying in %.1fs",
                last.status_code, attempt + 1, attempts, delay,
            )
            await self._sleep(delay)
            attempt += 1

        logger.error("Giving up after %d attempts, last status %d", attempts, last.status_code)
        raise ExhaustedRetries(
            f"Service answered {last.status_code} on all {attempts} attempts.",
            status_code=last.status_code,
            body=last.body,
            attempts=attempts,
        )
