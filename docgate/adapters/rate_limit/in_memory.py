"""In-memory fixed-window rate limiters.

Notes:
- Per-process only: every process holding its own limiter enforces its own budget.
- A window starts at the first admission after the previous one elapsed,
  not at epoch-aligned boundaries.
- The (window_start, available) pair is only touched while holding the lock;
  waiters release the lock while they sleep.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from docgate.adapters.rate_limit.base import (
    AbstractAsyncRateLimiter,
    AbstractRateLimiter,
    RateLimitResult,
)
from docgate.core.errors import AcquireCancelledError, InvalidConfigurationError

logger = logging.getLogger(__name__)

# How often a waiter re-checks its cancel event
CANCEL_POLL_INTERVAL_SECONDS = 0.05


@dataclass
class _WindowState:
    window_start: float
    available: int


def _window_to_seconds(window: float | timedelta) -> float:
    if isinstance(window, timedelta):
        return window.total_seconds()
    return float(window)


class _FixedWindowCore:
    """Window accounting shared by the thread and asyncio limiters.

    Every ``_locked`` method assumes the caller holds the limiter's lock.
    """

    def __init__(
        self,
        *,
        window_seconds: float | timedelta,
        capacity: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Validate configuration and open the first window.

        Args:
            window_seconds: Window length in seconds, or a ``timedelta``.
            capacity: Maximum number of admissions per window.
            clock: Monotonic time source returning seconds.

        Raises:
            InvalidConfigurationError: If capacity is not positive or the window
                is not a positive finite duration.
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise InvalidConfigurationError(
                code="invalid_capacity",
                message="capacity must be an integer >= 1",
                details={"capacity": capacity},
            )
        window = _window_to_seconds(window_seconds)
        if not (window > 0 and math.isfinite(window)):
            raise InvalidConfigurationError(
                code="invalid_window",
                message="window must be a positive, finite duration",
                details={"window_seconds": window},
            )

        self._capacity = capacity
        self._window_seconds = window
        self._clock = clock
        self._state = _WindowState(window_start=clock(), available=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def available_permits(self) -> int:
        """Permits grantable right now, counting a rollover that is already due."""
        return self.snapshot().remaining

    def _rollover_due(self, now: float) -> bool:
        # Elapsed == window counts as due: the boundary instant opens the next
        # window, so a waiter woken exactly at the deadline is admitted.
        return now - self._state.window_start >= self._window_seconds

    def _roll_over_if_due_locked(self, now: float) -> bool:
        """Start a fresh window when the current one has elapsed.

        Returns:
            True if a rollover happened.
        """
        if not self._rollover_due(now):
            return False

        previous = self._state.available
        # Reset, not top up: leftovers never carry over past capacity.
        self._state.available = self._capacity
        self._state.window_start = now
        logger.debug(
            "rate_limit.rollover",
            extra={
                "capacity": self._capacity,
                "window_s": self._window_seconds,
                "unused_permits": previous,
            },
        )
        return True

    def _take_permit_locked(self, now: float) -> bool:
        self._roll_over_if_due_locked(now)
        if self._state.available > 0:
            self._state.available -= 1
            return True
        return False

    def _seconds_until_rollover_locked(self, now: float) -> float:
        return max(0.0, self._state.window_start + self._window_seconds - now)

    def _try_acquire_locked(self) -> RateLimitResult:
        now = self._clock()
        allowed = self._take_permit_locked(now)
        return self._build_result_locked(now, allowed=allowed)

    def _snapshot_locked(self) -> RateLimitResult:
        now = self._clock()
        if self._rollover_due(now):
            # Report the window the next caller would see, without mutating.
            return RateLimitResult(
                allowed=True,
                limit=self._capacity,
                remaining=self._capacity,
                reset_at=now + self._window_seconds,
                retry_after_seconds=None,
            )
        return self._build_result_locked(now, allowed=self._state.available > 0)

    def _build_result_locked(self, now: float, *, allowed: bool) -> RateLimitResult:
        reset_at = self._state.window_start + self._window_seconds
        return RateLimitResult(
            allowed=allowed,
            limit=self._capacity,
            remaining=self._state.available,
            reset_at=reset_at,
            retry_after_seconds=None if allowed else self._seconds_until_rollover_locked(now),
        )

    def _timeout_error(self, timeout: float) -> AcquireCancelledError:
        return AcquireCancelledError(
            code="acquire_timeout",
            message=f"No permit became available within {timeout} seconds",
            details={"timeout_seconds": timeout, "capacity": self._capacity},
        )


class FixedWindowRateLimiter(_FixedWindowCore, AbstractRateLimiter):
    """Blocking fixed-window limiter shared by any number of threads.

    At most ``capacity`` permits are granted per window of ``window_seconds``.
    Callers over the limit sleep on a condition variable until the window
    rolls over; nobody busy-waits and nobody holds the lock while sleeping.

    Example:
        >>> limiter = FixedWindowRateLimiter(window_seconds=10, capacity=5)
        >>> limiter.acquire()
    """

    def __init__(
        self,
        *,
        window_seconds: float | timedelta,
        capacity: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(window_seconds=window_seconds, capacity=capacity, clock=clock)
        self._condition = threading.Condition(threading.Lock())

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"FixedWindowRateLimiter(window_seconds={self._window_seconds}, "
            f"capacity={self._capacity})"
        )

    def acquire(
        self,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Block until one permit is consumed.

        Args:
            timeout: Give up after this many seconds (None waits indefinitely).
            cancel_event: Give up as soon as this event is set.

        Raises:
            AcquireCancelledError: If cancelled or timed out; no permit is consumed.
        """
        deadline = None if timeout is None else self._clock() + timeout

        with self._condition:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    raise AcquireCancelledError(
                        code="acquire_cancelled",
                        message="Permit acquisition was cancelled by the caller",
                        details={"capacity": self._capacity},
                    )

                now = self._clock()
                rolled_over = self._roll_over_if_due_locked(now)
                if rolled_over:
                    # Other waiters may fit in the fresh window too.
                    self._condition.notify_all()
                if self._take_permit_locked(now):
                    return

                wait_for = self._seconds_until_rollover_locked(now)
                if deadline is not None:
                    remaining = deadline - now
                    if remaining <= 0:
                        raise self._timeout_error(timeout)
                    wait_for = min(wait_for, remaining)
                if cancel_event is not None:
                    wait_for = min(wait_for, CANCEL_POLL_INTERVAL_SECONDS)

                # Condition.wait overflows above TIMEOUT_MAX; the loop re-waits.
                self._condition.wait(timeout=min(wait_for, threading.TIMEOUT_MAX))

    def try_acquire(self) -> RateLimitResult:
        """Consume a permit only if one is available right now.

        Returns:
            RateLimitResult with the allowance decision and window metadata.
        """
        with self._condition:
            return self._try_acquire_locked()

    def snapshot(self) -> RateLimitResult:
        with self._condition:
            return self._snapshot_locked()


class AsyncFixedWindowRateLimiter(_FixedWindowCore, AbstractAsyncRateLimiter):
    """asyncio flavour of :class:`FixedWindowRateLimiter`.

    Shared by tasks of a single event loop. Cancelling a waiting task
    propagates ``asyncio.CancelledError`` and consumes no permit.
    """

    def __init__(
        self,
        *,
        window_seconds: float | timedelta,
        capacity: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(window_seconds=window_seconds, capacity=capacity, clock=clock)
        self._condition = asyncio.Condition()

    async def acquire(self, *, timeout: float | None = None) -> None:
        """Suspend until one permit is consumed.

        Args:
            timeout: Give up after this many seconds (None waits indefinitely).

        Raises:
            AcquireCancelledError: If ``timeout`` elapsed first.
            asyncio.CancelledError: If the waiting task was cancelled.
        """
        deadline = None if timeout is None else self._clock() + timeout

        async with self._condition:
            while True:
                now = self._clock()
                if self._roll_over_if_due_locked(now):
                    self._condition.notify_all()
                if self._take_permit_locked(now):
                    return

                wait_for = self._seconds_until_rollover_locked(now)
                if deadline is not None:
                    remaining = deadline - now
                    if remaining <= 0:
                        raise self._timeout_error(timeout)
                    wait_for = min(wait_for, remaining)

                try:
                    await asyncio.wait_for(self._condition.wait(), timeout=wait_for)
                except asyncio.TimeoutError:
                    # Lock is held again here; loop to re-evaluate the window.
                    pass

    def try_acquire(self) -> RateLimitResult:
        # No await between check and update, so the event loop makes this atomic.
        return self._try_acquire_locked()

    def snapshot(self) -> RateLimitResult:
        return self._snapshot_locked()
