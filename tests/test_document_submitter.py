"""Unit tests for the document submission service."""

import json
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from docgate.adapters.rate_limit.in_memory import (
    AsyncFixedWindowRateLimiter,
    FixedWindowRateLimiter,
)
from docgate.adapters.serialization.base import AbstractDocumentSerializer
from docgate.adapters.serialization.json_serializer import JsonDocumentSerializer
from docgate.adapters.transport.base import (
    AbstractAsyncTransport,
    AbstractTransport,
    TransportResponse,
)
from docgate.core.errors import (
    AcquireCancelledError,
    SerializationAppError,
    TransportAppError,
)
from docgate.schemas.document import DocumentRequest, ProductionType
from docgate.services.document_submitter import (
    AsyncDocumentSubmitter,
    DocumentSubmitter,
    SubmitResponse,
)

ENDPOINT = "https://registry.test/api/v3/lk/documents/create"


def _sample_request() -> DocumentRequest:
    return DocumentRequest(
        doc_id="doc-1",
        doc_status="DRAFT",
        owner_inn="7700000000",
        participant_inn="7700000000",
        producer_inn="7711111111",
        production_date="2024-01-15",
        production_type=ProductionType.OWN_PRODUCTION,
        reg_date="2024-01-16",
    )


class ExplodingSerializer(AbstractDocumentSerializer):
    def serialize(self, request):
        raise SerializationAppError(code="serialization_failed", message="boom")


@pytest.fixture
def limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(window_seconds=60, capacity=5)


@pytest.fixture
def transport() -> MagicMock:
    mock = MagicMock(spec=AbstractTransport)
    mock.send.return_value = TransportResponse(status_code=200, body="OK")
    return mock


def _submitter(limiter, transport, serializer=None) -> DocumentSubmitter:
    return DocumentSubmitter(
        limiter=limiter,
        transport=transport,
        serializer=serializer or JsonDocumentSerializer(),
        endpoint_url=ENDPOINT,
    )


class TestDocumentSubmitter:
    """Submit flow: acquire, serialize, send, pass through."""

    def test_returns_transport_response_unchanged(self, limiter, transport) -> None:
        response = _submitter(limiter, transport).submit(_sample_request(), "sig-123")

        assert response == SubmitResponse(status_code=200, body="OK")
        assert response is transport.send.return_value

    def test_sends_json_body_with_signature_headers(self, limiter, transport) -> None:
        _submitter(limiter, transport).submit(_sample_request(), "sig-123")

        transport.send.assert_called_once()
        call = transport.send.call_args
        assert call.args == (ENDPOINT,)
        assert call.kwargs["headers"] == {
            "Content-Type": "application/json",
            "Signature": "sig-123",
        }
        payload = json.loads(call.kwargs["body"])
        assert payload["doc_id"] == "doc-1"
        assert payload["importRequest"] is False

    def test_each_submit_consumes_one_permit(self, limiter, transport) -> None:
        submitter = _submitter(limiter, transport)

        submitter.submit(_sample_request(), "sig")
        submitter.submit({"doc_id": "raw"}, "sig")

        assert limiter.available_permits == 3
        assert transport.send.call_count == 2

    def test_serialization_failure_keeps_permit_consumed(self, limiter, transport) -> None:
        submitter = _submitter(limiter, transport, ExplodingSerializer())

        with pytest.raises(SerializationAppError):
            submitter.submit(_sample_request(), "sig")

        assert limiter.available_permits == 4
        transport.send.assert_not_called()

    def test_unsupported_request_type_is_serialization_error(self, limiter, transport) -> None:
        with pytest.raises(SerializationAppError) as exc:
            _submitter(limiter, transport).submit(object(), "sig")

        assert exc.value.code == "serialization_failed"
        assert limiter.available_permits == 4
        transport.send.assert_not_called()

    def test_unexpected_serializer_exception_is_wrapped(self, limiter, transport) -> None:
        serializer = MagicMock(spec=AbstractDocumentSerializer)
        serializer.serialize.side_effect = RuntimeError("encoder crashed")

        with pytest.raises(SerializationAppError) as exc:
            _submitter(limiter, transport, serializer).submit(_sample_request(), "sig")

        assert isinstance(exc.value.__cause__, RuntimeError)
        transport.send.assert_not_called()

    def test_transport_app_error_propagates_as_is(self, limiter, transport) -> None:
        error = TransportAppError(code="transport_failed", message="connection reset")
        transport.send.side_effect = error

        with pytest.raises(TransportAppError) as exc:
            _submitter(limiter, transport).submit(_sample_request(), "sig")

        assert exc.value is error

    def test_unexpected_transport_exception_is_wrapped(self, limiter, transport) -> None:
        transport.send.side_effect = OSError("socket closed")

        with pytest.raises(TransportAppError) as exc:
            _submitter(limiter, transport).submit(_sample_request(), "sig")

        assert exc.value.details["endpoint_url"] == ENDPOINT
        assert isinstance(exc.value.__cause__, OSError)
        assert transport.send.call_count == 1

    def test_acquire_timeout_skips_serialization_and_transport(self, transport) -> None:
        limiter = FixedWindowRateLimiter(window_seconds=60, capacity=1)
        serializer = MagicMock(spec=AbstractDocumentSerializer)
        serializer.serialize.return_value = b"{}"
        submitter = _submitter(limiter, transport, serializer)
        submitter.submit({}, "sig")

        with pytest.raises(AcquireCancelledError):
            submitter.submit({}, "sig", timeout=0.05)

        assert serializer.serialize.call_count == 1
        assert transport.send.call_count == 1

    def test_failure_logged_with_stage(self, limiter, transport, caplog) -> None:
        transport.send.side_effect = OSError("down")

        with caplog.at_level(logging.WARNING, logger="docgate.services.document_submitter"):
            with pytest.raises(TransportAppError):
                _submitter(limiter, transport).submit(_sample_request(), "sig")

        record = next(r for r in caplog.records if r.getMessage() == "submission.failed")
        assert record.failed_during == "sending"
        assert record.error_code == "transport_failed"


class TestAsyncDocumentSubmitter:
    """asyncio submit flow."""

    @pytest.mark.asyncio
    async def test_returns_transport_response_unchanged(self) -> None:
        limiter = AsyncFixedWindowRateLimiter(window_seconds=60, capacity=5)
        transport = MagicMock(spec=AbstractAsyncTransport)
        transport.send = AsyncMock(return_value=TransportResponse(status_code=200, body="OK"))

        submitter = AsyncDocumentSubmitter(
            limiter=limiter,
            transport=transport,
            serializer=JsonDocumentSerializer(),
            endpoint_url=ENDPOINT,
        )
        response = await submitter.submit(_sample_request(), "sig-async")

        assert response == SubmitResponse(status_code=200, body="OK")
        assert transport.send.await_args.kwargs["headers"]["Signature"] == "sig-async"
        assert limiter.available_permits == 4

    @pytest.mark.asyncio
    async def test_serialization_failure_keeps_permit_consumed(self) -> None:
        limiter = AsyncFixedWindowRateLimiter(window_seconds=60, capacity=5)
        transport = MagicMock(spec=AbstractAsyncTransport)
        transport.send = AsyncMock()

        submitter = AsyncDocumentSubmitter(
            limiter=limiter,
            transport=transport,
            serializer=ExplodingSerializer(),
            endpoint_url=ENDPOINT,
        )
        with pytest.raises(SerializationAppError):
            await submitter.submit(_sample_request(), "sig")

        assert limiter.available_permits == 4
        transport.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_transport_exception_is_wrapped(self) -> None:
        limiter = AsyncFixedWindowRateLimiter(window_seconds=60, capacity=5)
        transport = MagicMock(spec=AbstractAsyncTransport)
        transport.send = AsyncMock(side_effect=ConnectionError("refused"))

        submitter = AsyncDocumentSubmitter(
            limiter=limiter,
            transport=transport,
            serializer=JsonDocumentSerializer(),
            endpoint_url=ENDPOINT,
        )
        with pytest.raises(TransportAppError):
            await submitter.submit({"doc_id": "x"}, "sig")
