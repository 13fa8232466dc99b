"""
Tests for the shared retry loop and Deadline
"""
import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from core.exceptions import DeadlineExceededError
from core.retry import Deadline, RetryExhausted, linear_backoff, retry_async

pytestmark = [pytest.mark.unit]


class TestLinearBackoff:
    def test_delay_grows_with_attempt(self):
        backoff = linear_backoff(1.5)
        assert [backoff(n) for n in (1, 2, 3)] == [1.5, 3.0, 4.5]


class TestRetryAsync:
    async def test_returns_first_success(self):
        operation = AsyncMock(return_value="ok")

        assert await retry_async(operation, max_attempts=3, backoff=linear_backoff(0)) == "ok"
        assert operation.await_count == 1

    async def test_retries_until_success(self):
        operation = AsyncMock(side_effect=[ValueError("one"), ValueError("two"), "ok"])
        on_retry = []

        result = await retry_async(
            operation,
            max_attempts=3,
            backoff=linear_backoff(0),
            on_retry=lambda attempt, error: on_retry.append(attempt),
        )

        assert result == "ok"
        assert operation.await_count == 3
        assert on_retry == [1, 2]

    async def test_exhaustion_carries_last_error(self):
        errors = [ValueError("first"), ValueError("last")]
        operation = AsyncMock(side_effect=errors)

        with pytest.raises(RetryExhausted) as exc_info:
            await retry_async(operation, max_attempts=2, backoff=linear_backoff(0))

        assert exc_info.value.attempts == 2
        assert exc_info.value.last_error is errors[1]

    async def test_non_retryable_error_propagates_immediately(self):
        error = KeyError("fatal")
        operation = AsyncMock(side_effect=error)

        with pytest.raises(KeyError) as exc_info:
            await retry_async(
                operation,
                max_attempts=5,
                backoff=linear_backoff(0),
                is_retryable=lambda e: not isinstance(e, KeyError),
            )

        assert exc_info.value is error
        assert operation.await_count == 1

    async def test_zero_attempts_still_runs_once(self):
        operation = AsyncMock(return_value=1)
        assert await retry_async(operation, max_attempts=0) == 1

    async def test_sleeps_between_attempts_only(self):
        operation = AsyncMock(side_effect=[ValueError(), ValueError(), ValueError()])

        with patch("core.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(RetryExhausted):
                await retry_async(operation, max_attempts=3, backoff=linear_backoff(2))

        assert [c.args[0] for c in sleep.await_args_list] == [2, 4]

    async def test_deadline_bounds_slow_attempt(self):
        async def slow():
            await asyncio.sleep(1)

        with pytest.raises(DeadlineExceededError):
            await retry_async(slow, max_attempts=3, deadline=Deadline(0.05, operation="slow"))

    async def test_deadline_bounds_backoff(self):
        operation = AsyncMock(side_effect=ValueError("flaky"))

        with pytest.raises(DeadlineExceededError):
            await retry_async(operation, max_attempts=3, backoff=linear_backoff(10), deadline=Deadline(0.05))

        assert operation.await_count == 1


class TestDeadline:
    def test_unbounded(self):
        deadline = Deadline.none()

        assert deadline.remaining() is None
        assert not deadline.expired
        deadline.check()

    async def test_expired_deadline_rejects_work(self):
        deadline = Deadline(0, operation="request")

        async def work():
            return 1

        with pytest.raises(DeadlineExceededError) as exc_info:
            await deadline.run(work())

        assert exc_info.value.details["operation"] == "request"

    async def test_run_within_deadline(self):
        async def work():
            return "done"

        assert await Deadline(1).run(work()) == "done"
