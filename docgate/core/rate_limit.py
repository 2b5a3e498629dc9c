"""Process-wide rate limiter shared by every submitter.

All submitters in a process must draw from the same budget, otherwise each
one would enforce its own limit toward the same remote service.
"""

from __future__ import annotations

import logging
import threading

from docgate.adapters.rate_limit.base import AbstractRateLimiter
from docgate.adapters.rate_limit.in_memory import FixedWindowRateLimiter
from docgate.core.config import SubmitterSettings, settings

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, float] | None = None
_limiter_lock = threading.Lock()


def get_rate_limiter(submitter_settings: SubmitterSettings | None = None) -> AbstractRateLimiter:
    """Return the process-wide rate limiter instance.

    The instance is cached in-module to preserve window state across calls.
    If configuration changes (primarily in tests), the limiter is rebuilt.

    Args:
        submitter_settings: Settings to build from; defaults to global settings.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    cfg = submitter_settings or settings.submitter
    config = (cfg.rate_limit_requests, cfg.rate_limit_window_seconds)

    with _limiter_lock:
        if _limiter is None or _limiter_config != config:
            _limiter = FixedWindowRateLimiter(
                window_seconds=cfg.rate_limit_window_seconds,
                capacity=cfg.rate_limit_requests,
            )
            _limiter_config = config
            logger.info(
                "rate_limit.configured",
                extra={
                    "capacity": cfg.rate_limit_requests,
                    "window_s": cfg.rate_limit_window_seconds,
                },
            )
        return _limiter


def reset_rate_limiter() -> None:
    """Drop the cached limiter so the next call builds a fresh one."""

    global _limiter, _limiter_config

    with _limiter_lock:
        _limiter = None
        _limiter_config = None
