"""Bounded retry with exponential backoff for remote calls."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from structlog import get_logger

from ytanalytics.auth.exceptions import CredentialsError

from .errors import classify_exception, to_terminal_error


logger = get_logger(__name__)

T = TypeVar("T")


class ResilientInvoker:
    """Runs a remote action, retrying failures classified as retryable.

    Attempt ``n`` (zero based) that fails retryably is followed by a sleep of
    ``base_delay * 2**n`` seconds plus up to ``jitter_ratio`` of that as
    random extra. Authentication failures are never retried here.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        *,
        base_delay: float = 1.0,
        jitter_ratio: float = 0.0,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        rng: Callable[[], float] = random.random,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if not 0.0 <= jitter_ratio <= 1.0:
            raise ValueError("jitter_ratio must be between 0 and 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.jitter_ratio = jitter_ratio
        self._sleep = sleep
        self._rng = rng
        self._shutdown = asyncio.Event()

    @property
    def is_shutting_down(self) -> bool:
        return self._shutdown.is_set()

    def shutdown(self) -> None:
        """Interrupt pending backoff sleeps; later failures are not retried."""
        self._shutdown.set()

    def backoff_delay(self, attempt_index: int) -> float:
        delay = self.base_delay * (2**attempt_index)
        if self.jitter_ratio:
            delay += delay * self.jitter_ratio * self._rng()
        return delay

    async def _wait(self, delay: float) -> None:
        if self._sleep is not None:
            await self._sleep(delay)
            return
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=delay)
        except TimeoutError:
            pass

    async def invoke(
        self,
        action: Callable[[], Awaitable[T]],
        *,
        operation: str = "remote_call",
        max_attempts: int | None = None,
    ) -> T:
        """Run ``action`` until it succeeds or fails terminally.

        Raises:
            QuotaExceededError: Quota exhausted; never retried
            RateLimitError: Still throttled after the last attempt
            AuthFailedError: Credential rejected; the caller must refresh
            RemoteCallError: Any other classified failure
        """
        attempts = max_attempts or self.max_attempts

        for attempt_index in range(attempts):
            try:
                return await action()
            except CredentialsError:
                raise
            except Exception as e:
                classified = classify_exception(e)
                last_error = e

            remaining = attempts - attempt_index - 1
            if not classified.retryable or remaining == 0 or self.is_shutting_down:
                logger.warning(
                    "remote_call_failed",
                    operation=operation,
                    kind=classified.kind.value,
                    status_code=classified.status_code,
                    attempts=attempt_index + 1,
                    error=classified.message,
                )
                raise to_terminal_error(classified) from last_error

            delay = self.backoff_delay(attempt_index)
            logger.info(
                "remote_call_retrying",
                operation=operation,
                kind=classified.kind.value,
                attempt=attempt_index + 1,
                delay=round(delay, 3),
            )
            await self._wait(delay)
            if self.is_shutting_down:
                logger.info("remote_call_retry_abandoned", operation=operation)
                raise to_terminal_error(classified) from last_error

        # unreachable: the loop either returns or raises
        raise RuntimeError(f"{operation} exhausted retries without a result")
