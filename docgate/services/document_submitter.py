"""Document submission service gated by a rate limiter.

Each call walks the same path:
- Acquire a permit from the shared limiter (may block)
- Serialize the request into its JSON body
- POST it through the transport with the signature header
- Return the transport response unchanged

A permit consumed for a request that later fails to serialize is not
refunded: the limiter accounts for attempted throughput toward the remote
service, not for successful deliveries. There are no retries at this layer.
"""

from __future__ import annotations

import logging
import time
import uuid
from enum import Enum
from typing import Any

from docgate.adapters.rate_limit.base import AbstractAsyncRateLimiter, AbstractRateLimiter
from docgate.adapters.serialization.base import AbstractDocumentSerializer
from docgate.adapters.transport.base import (
    AbstractAsyncTransport,
    AbstractTransport,
    TransportResponse,
)
from docgate.core.errors import AppError, SerializationAppError, TransportAppError
from docgate.core.logging import clear_submission_id, set_submission_id

logger = logging.getLogger(__name__)

# The remote API returns status and body; nothing else is interpreted here.
SubmitResponse = TransportResponse


class SubmissionState(str, Enum):
    """Lifecycle of a single submit call."""

    IDLE = "idle"
    ACQUIRING = "acquiring"
    SERIALIZING = "serializing"
    SENDING = "sending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def build_headers(signature: str) -> dict[str, str]:
    """Headers sent with every submission."""
    return {
        "Content-Type": "application/json",
        "Signature": signature,
    }


def _serialize(serializer: AbstractDocumentSerializer, request: Any) -> bytes:
    try:
        return serializer.serialize(request)
    except AppError:
        raise
    except Exception as exc:
        raise SerializationAppError(
            code="serialization_failed",
            message=f"Request could not be serialized: {exc}",
            details={"request_type": type(request).__name__, "error_type": type(exc).__name__},
        ) from exc


def _wrap_transport_error(endpoint_url: str, exc: Exception) -> TransportAppError:
    return TransportAppError(
        code="transport_failed",
        message=f"Transport failed to deliver submission: {exc}",
        details={"endpoint_url": endpoint_url, "error_type": type(exc).__name__},
    )


def _log_failure(state: SubmissionState, exc: Exception, started: float) -> None:
    logger.warning(
        "submission.failed",
        extra={
            "failed_during": state.value,
            "error_type": type(exc).__name__,
            "error_code": getattr(exc, "code", None),
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )


def _log_success(response: TransportResponse, body_size: int, started: float) -> None:
    logger.info(
        "submission.sent",
        extra={
            "state": SubmissionState.SUCCEEDED.value,
            "status_code": response.status_code,
            "body_bytes": body_size,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )


class DocumentSubmitter:
    """Submit documents one POST at a time, throttled by a shared limiter.

    Safe to share between threads as long as the limiter, serializer and
    transport are.
    """

    def __init__(
        self,
        *,
        limiter: AbstractRateLimiter,
        transport: AbstractTransport,
        serializer: AbstractDocumentSerializer,
        endpoint_url: str,
    ) -> None:
        self.limiter = limiter
        self.transport = transport
        self.serializer = serializer
        self.endpoint_url = endpoint_url

    def submit(self, request: Any, signature: str, *, timeout: float | None = None) -> SubmitResponse:
        """Submit one document.

        Args:
            request: Structured request (e.g. ``DocumentRequest``).
            signature: Detached signature sent in the ``Signature`` header.
            timeout: Maximum seconds to wait for a permit (None waits indefinitely).

        Returns:
            SubmitResponse: Status code and body exactly as returned by the transport.

        Raises:
            AcquireCancelledError: If no permit was granted within ``timeout``.
            SerializationAppError: If the request cannot be serialized (permit stays consumed).
            TransportAppError: If the transport failed.
        """
        set_submission_id(uuid.uuid4().hex)
        started = time.perf_counter()
        state = SubmissionState.IDLE
        try:
            state = SubmissionState.ACQUIRING
            self.limiter.acquire(timeout=timeout)

            state = SubmissionState.SERIALIZING
            body = _serialize(self.serializer, request)

            state = SubmissionState.SENDING
            try:
                response = self.transport.send(
                    self.endpoint_url,
                    headers=build_headers(signature),
                    body=body,
                )
            except TransportAppError:
                raise
            except Exception as exc:
                raise _wrap_transport_error(self.endpoint_url, exc) from exc

            _log_success(response, len(body), started)
            return response
        except Exception as exc:
            _log_failure(state, exc, started)
            raise
        finally:
            clear_submission_id()


class AsyncDocumentSubmitter:
    """asyncio counterpart of :class:`DocumentSubmitter`."""

    def __init__(
        self,
        *,
        limiter: AbstractAsyncRateLimiter,
        transport: AbstractAsyncTransport,
        serializer: AbstractDocumentSerializer,
        endpoint_url: str,
    ) -> None:
        self.limiter = limiter
        self.transport = transport
        self.serializer = serializer
        self.endpoint_url = endpoint_url

    async def submit(
        self,
        request: Any,
        signature: str,
        *,
        timeout: float | None = None,
    ) -> SubmitResponse:
        """Submit one document; see :meth:`DocumentSubmitter.submit`.

        Task cancellation while waiting for a permit propagates as
        ``asyncio.CancelledError`` without consuming a permit.
        """
        set_submission_id(uuid.uuid4().hex)
        started = time.perf_counter()
        state = SubmissionState.IDLE
        try:
            state = SubmissionState.ACQUIRING
            await self.limiter.acquire(timeout=timeout)

            state = SubmissionState.SERIALIZING
            body = _serialize(self.serializer, request)

            state = SubmissionState.SENDING
            try:
                response = await self.transport.send(
                    self.endpoint_url,
                    headers=build_headers(signature),
                    body=body,
                )
            except TransportAppError:
                raise
            except Exception as exc:
                raise _wrap_transport_error(self.endpoint_url, exc) from exc

            _log_success(response, len(body), started)
            return response
        except Exception as exc:
            _log_failure(state, exc, started)
            raise
        finally:
            clear_submission_id()
