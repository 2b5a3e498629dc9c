"""Rate limiter interfaces.

The submitter depends on these abstractions (not the concrete implementation)
so the in-memory limiter can be replaced (e.g., by a shared store) without
touching the submission flow.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit snapshot or non-blocking consume.

    Attributes:
        allowed: Whether a permit was (or could be) granted.
        limit: Max admissions per window.
        remaining: Permits still grantable in the current window.
        reset_at: Clock reading at which the current window rolls over.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: float | None


class AbstractRateLimiter(ABC):
    """Interface for blocking rate limiters shared between threads."""

    @abstractmethod
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
            AcquireCancelledError: If the caller gave up before a permit was granted.
        """
        raise NotImplementedError

    @abstractmethod
    def try_acquire(self) -> RateLimitResult:
        """Consume a permit only if one is available right now."""
        raise NotImplementedError

    @abstractmethod
    def snapshot(self) -> RateLimitResult:
        """Describe the current window without consuming anything."""
        raise NotImplementedError


class AbstractAsyncRateLimiter(ABC):
    """Interface for rate limiters shared between asyncio tasks."""

    @abstractmethod
    async def acquire(self, *, timeout: float | None = None) -> None:
        """Suspend until one permit is consumed.

        Task cancellation propagates as ``asyncio.CancelledError``.

        Raises:
            AcquireCancelledError: If ``timeout`` elapsed before a permit was granted.
        """
        raise NotImplementedError

    @abstractmethod
    def try_acquire(self) -> RateLimitResult:
        """Consume a permit only if one is available right now."""
        raise NotImplementedError

    @abstractmethod
    def snapshot(self) -> RateLimitResult:
        """Describe the current window without consuming anything."""
        raise NotImplementedError
