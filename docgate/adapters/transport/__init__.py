"""Transport adapter layer - delivers serialized submissions over HTTP."""

from docgate.adapters.transport.base import (
    AbstractAsyncTransport,
    AbstractTransport,
    TransportResponse,
)
from docgate.adapters.transport.httpx_transport import AsyncHttpxTransport, HttpxTransport

__all__ = [
    "AbstractAsyncTransport",
    "AbstractTransport",
    "AsyncHttpxTransport",
    "HttpxTransport",
    "TransportResponse",
]
