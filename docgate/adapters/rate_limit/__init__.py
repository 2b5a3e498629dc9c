"""Rate limiting adapters.

This package provides a small abstraction layer so submissions can start with
an in-memory limiter and later migrate to a shared store without changing the
submission flow.
"""

from docgate.adapters.rate_limit.base import (
    AbstractAsyncRateLimiter,
    AbstractRateLimiter,
    RateLimitResult,
)
from docgate.adapters.rate_limit.in_memory import (
    AsyncFixedWindowRateLimiter,
    FixedWindowRateLimiter,
)

__all__ = [
    "AbstractAsyncRateLimiter",
    "AbstractRateLimiter",
    "AsyncFixedWindowRateLimiter",
    "FixedWindowRateLimiter",
    "RateLimitResult",
]
