"""httpx transport adapters.

Use httpx's connection-pooling clients; one client per transport instance.
"""

from __future__ import annotations

from typing import Mapping

import httpx

from docgate.adapters.transport.base import (
    AbstractAsyncTransport,
    AbstractTransport,
    TransportResponse,
)
from docgate.core.errors import TransportAppError


def _transport_error(url: str, exc: httpx.HTTPError) -> TransportAppError:
    return TransportAppError(
        code="transport_failed",
        message=f"HTTP request to registration service failed: {exc}",
        details={"endpoint_url": url, "error_type": type(exc).__name__},
    )


class HttpxTransport(AbstractTransport):
    """Blocking transport backed by ``httpx.Client``.

    The client is thread-safe, so one transport can serve every submitting thread.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            timeout_seconds: Timeout applied to connect/read/write/pool.
            client: Pre-built client (tests pass one with ``httpx.MockTransport``).
        """
        self.client = client or httpx.Client(timeout=timeout_seconds)

    def send(self, url: str, *, headers: Mapping[str, str], body: bytes) -> TransportResponse:
        try:
            response = self.client.post(url, headers=dict(headers), content=body)
            return TransportResponse(status_code=response.status_code, body=response.text)
        except httpx.HTTPError as exc:
            raise _transport_error(url, exc) from exc

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class AsyncHttpxTransport(AbstractAsyncTransport):
    """asyncio transport backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def send(self, url: str, *, headers: Mapping[str, str], body: bytes) -> TransportResponse:
        try:
            response = await self.client.post(url, headers=dict(headers), content=body)
            return TransportResponse(status_code=response.status_code, body=response.text)
        except httpx.HTTPError as exc:
            raise _transport_error(url, exc) from exc

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "AsyncHttpxTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
