"""
Retry and deadline utilities

One retry loop shared by the plugin registry and the AI client. A Deadline is
threaded through every suspension point so that the configured timeout bounds
both the attempts and the backoff sleeps.
"""
import asyncio
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from core.exceptions import DeadlineExceededError
from core.logging import get_logger

logger = get_logger(__name__, domain="core")

T = TypeVar("T")


class Deadline:
    """Monotonic point in time after which work must stop"""

    def __init__(self, seconds: Optional[float] = None, operation: str = "operation"):
        self.timeout_seconds = seconds
        self.operation = operation
        self._expires_at = None if seconds is None else time.monotonic() + seconds

    @classmethod
    def none(cls) -> "Deadline":
        return cls(None)

    def remaining(self) -> Optional[float]:
        """Seconds left, or None for an unbounded deadline"""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self) -> None:
        if self.expired:
            raise DeadlineExceededError(self.operation, self.timeout_seconds)

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await under the remaining time"""
        remaining = self.remaining()
        if remaining is None:
            return await awaitable
        if remaining <= 0:
            # close the coroutine so it is not reported as never awaited
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise DeadlineExceededError(self.operation, self.timeout_seconds)
        try:
            return await asyncio.wait_for(awaitable, timeout=remaining)
        except asyncio.TimeoutError:
            if self.expired:
                raise DeadlineExceededError(self.operation, self.timeout_seconds) from None
            raise

    async def sleep(self, seconds: float) -> None:
        """Sleep, clipped to the remaining time"""
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            await asyncio.sleep(remaining)
            raise DeadlineExceededError(self.operation, self.timeout_seconds)
        await asyncio.sleep(seconds)


class RetryExhausted(Exception):
    """Every attempt failed with a retryable error"""

    def __init__(self, last_error: BaseException, attempts: int):
        super().__init__(f"failed after {attempts} attempts: {last_error}")
        self.last_error = last_error
        self.attempts = attempts


def linear_backoff(delay: float) -> Callable[[int], float]:
    """Backoff of delay * attempt, attempt counted from 1"""

    def backoff(attempt: int) -> float:
        return delay * attempt

    return backoff


def default_is_retryable(error: BaseException) -> bool:
    return not isinstance(error, DeadlineExceededError)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    backoff: Callable[[int], float] = linear_backoff(1.0),
    is_retryable: Callable[[BaseException], bool] = default_is_retryable,
    deadline: Optional[Deadline] = None,
    on_retry: Optional[Callable[[int, BaseException], Any]] = None,
) -> T:
    """
    Run operation until it succeeds or attempts run out

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        max_attempts: Total number of attempts (at least 1)
        backoff: Seconds to sleep after the given failed attempt
        is_retryable: Errors for which this returns False propagate immediately
        deadline: Bounds each attempt and each sleep
        on_retry: Called with (attempt, error) after every retryable failure

    Raises:
        RetryExhausted: When all attempts failed
        DeadlineExceededError: When the deadline passes
    """
    deadline = deadline or Deadline.none()
    attempts = max(1, max_attempts)
    last_error: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        deadline.check()
        try:
            return await deadline.run(operation())
        except Exception as e:
            if not is_retryable(e):
                raise
            last_error = e
            if on_retry is not None:
                on_retry(attempt, e)
            logger.warning(f"Attempt {attempt}/{attempts} failed: {e}")

            if attempt < attempts:
                await deadline.sleep(backoff(attempt))

    raise RetryExhausted(last_error, attempts)
