"""Tests for the asyncio fixed-window rate limiter."""

import asyncio
import time
from unittest.mock import Mock

import pytest

from docgate.adapters.rate_limit.in_memory import AsyncFixedWindowRateLimiter
from docgate.core.errors import AcquireCancelledError, InvalidConfigurationError


@pytest.mark.asyncio
async def test_waiting_task_admitted_after_rollover() -> None:
    window = 0.2
    started = time.monotonic()
    limiter = AsyncFixedWindowRateLimiter(window_seconds=window, capacity=2)

    await limiter.acquire()
    await limiter.acquire()
    await limiter.acquire()

    assert time.monotonic() - started >= window
    assert limiter.available_permits == 1


@pytest.mark.asyncio
async def test_many_tasks_admitted_capacity_per_window() -> None:
    capacity = 5
    window = 0.3
    limiter = AsyncFixedWindowRateLimiter(window_seconds=window, capacity=capacity)
    admitted = 0

    async def _worker() -> None:
        nonlocal admitted
        await limiter.acquire()
        admitted += 1

    tasks = [asyncio.create_task(_worker()) for _ in range(capacity * 3)]

    await asyncio.sleep(window / 3)
    assert admitted == capacity

    await asyncio.wait_for(asyncio.gather(*tasks), timeout=10)
    assert admitted == capacity * 3


@pytest.mark.asyncio
async def test_timeout_raises_cancelled_error_without_consuming() -> None:
    limiter = AsyncFixedWindowRateLimiter(window_seconds=30, capacity=1)
    await limiter.acquire()

    with pytest.raises(AcquireCancelledError) as exc:
        await limiter.acquire(timeout=0.05)

    assert exc.value.code == "acquire_timeout"
    assert limiter.available_permits == 0


@pytest.mark.asyncio
async def test_task_cancellation_consumes_no_permit() -> None:
    window = 0.2
    limiter = AsyncFixedWindowRateLimiter(window_seconds=window, capacity=2)
    await limiter.acquire()
    await limiter.acquire()

    waiter = asyncio.create_task(limiter.acquire())
    await asyncio.sleep(0.02)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    await asyncio.sleep(window)
    await limiter.acquire()
    assert limiter.available_permits == 1


def test_try_acquire_with_fake_clock() -> None:
    clock = Mock(return_value=50.0)
    limiter = AsyncFixedWindowRateLimiter(window_seconds=5, capacity=1, clock=clock)

    assert limiter.try_acquire().allowed is True
    blocked = limiter.try_acquire()
    assert blocked.allowed is False
    assert blocked.retry_after_seconds == pytest.approx(5.0)

    clock.return_value = 55.0
    assert limiter.try_acquire().allowed is True


def test_invalid_configuration_rejected() -> None:
    with pytest.raises(InvalidConfigurationError):
        AsyncFixedWindowRateLimiter(window_seconds=1, capacity=0)
