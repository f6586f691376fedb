"""Fixed-delay retry for async gateway calls.

Every gateway operation runs through ``RetryExecutor.run``. The delay between
attempts is constant (no exponential backoff, no jitter) so retry timing is
deterministic under test. By default every ``Exception`` is retried; pass
``retry_on`` to narrow that to specific error types.

``asyncio.CancelledError`` is a ``BaseException`` and is never retried, so
cancelling the surrounding task stops the sequence.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from fxrates.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryExecutor:
    """Runs an async callable up to ``attempts`` times with a fixed delay.

    Args:
        attempts: Default total number of attempts (>= 1).
        delay_seconds: Pause between consecutive attempts.
        retry_on: Exception types that trigger a retry. Anything else
            propagates immediately.
    """

    def __init__(
        self,
        attempts: int = 3,
        delay_seconds: float = 1.0,
        retry_on: tuple[type[Exception], ...] = (Exception,),
    ) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {attempts}")
        self._attempts = attempts
        self._delay = delay_seconds
        self._retry_on = retry_on

    @property
    def attempts(self) -> int:
        return self._attempts

    async def run(
        self,
        fn: Callable[[], Awaitable[T]],
        attempts: int | None = None,
    ) -> T:
        """Await ``fn()`` until it succeeds or attempts are exhausted.

        Args:
            fn: Zero-argument coroutine factory; called once per attempt.
            attempts: Overrides the executor default for this call.

        Returns:
            The first successful result.

        Raises:
            The last error raised by ``fn`` once all attempts fail, or the
            first error that is not an instance of ``retry_on``.
        """
        total = self._attempts if attempts is None else attempts
        if total < 1:
            raise ValueError(f"attempts must be >= 1, got {total}")

        for attempt in range(1, total + 1):
            try:
                return await fn()
            except self._retry_on as e:
                if attempt == total:
                    logger.error(
                        "retry_exhausted",
                        attempts=total,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise
                logger.warning(
                    "retry_attempt_failed",
                    attempt=attempt,
                    max_attempts=total,
                    delay=self._delay,
                    error=str(e),
                )
                await asyncio.sleep(self._delay)

        raise AssertionError("unreachable")  # loop always returns or raises


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    attempts: int = 3,
    delay: float = 1.0,
) -> T:
    """Convenience wrapper: retry ``fn`` with an ad-hoc RetryExecutor."""
    return await RetryExecutor(attempts=attempts, delay_seconds=delay).run(fn)
