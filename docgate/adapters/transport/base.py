"""Transport interfaces.

A transport delivers one already-serialized request and hands back the raw
status and body. Connection pooling, TLS and timeouts belong here, not in the
submitter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class TransportResponse:
    """Status and body returned by the remote service, passed through unmodified.

    Attributes:
        status_code: HTTP status code.
        body: Response body decoded as text.
    """

    status_code: int
    body: str


class AbstractTransport(ABC):
    """Interface for blocking transports."""

    @abstractmethod
    def send(self, url: str, *, headers: Mapping[str, str], body: bytes) -> TransportResponse:
        """POST ``body`` to ``url`` with ``headers``.

        Raises:
            TransportAppError: If the request could not be delivered or the
                response could not be read.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release pooled connections (no-op by default)."""


class AbstractAsyncTransport(ABC):
    """Interface for asyncio transports."""

    @abstractmethod
    async def send(self, url: str, *, headers: Mapping[str, str], body: bytes) -> TransportResponse:
        """POST ``body`` to ``url`` with ``headers``.

        Raises:
            TransportAppError: If the request could not be delivered or the
                response could not be read.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release pooled connections (no-op by default)."""
