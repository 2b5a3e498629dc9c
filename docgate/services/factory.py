"""Factory functions wiring submitters from settings."""

from docgate.adapters.rate_limit.in_memory import AsyncFixedWindowRateLimiter
from docgate.adapters.serialization.json_serializer import JsonDocumentSerializer
from docgate.adapters.transport.httpx_transport import AsyncHttpxTransport, HttpxTransport
from docgate.core.config import SubmitterSettings, settings
from docgate.core.errors import ValidationAppError
from docgate.core.logging import ensure_logging_configured
from docgate.core.rate_limit import get_rate_limiter
from docgate.services.document_submitter import AsyncDocumentSubmitter, DocumentSubmitter


def _resolve_settings(submitter_settings: SubmitterSettings | None) -> SubmitterSettings:
    ensure_logging_configured(settings.log)
    cfg = submitter_settings or settings.submitter
    if not cfg.endpoint_url.startswith(("http://", "https://")):
        raise ValidationAppError(
            code="invalid_endpoint_url",
            message=f"Endpoint URL must be http(s): '{cfg.endpoint_url}'",
            details={"hint": "Set DOCGATE_ENDPOINT_URL to the registration service URL"},
        )
    return cfg


def create_document_submitter(
    submitter_settings: SubmitterSettings | None = None,
) -> DocumentSubmitter:
    """Build a thread-safe submitter drawing from the process-wide limiter.

    Args:
        submitter_settings: Settings to build from; defaults to global settings.

    Returns:
        DocumentSubmitter: Submitter with an httpx transport and JSON serializer.

    Raises:
        ValidationAppError: If the endpoint URL is not an http(s) URL.
    """
    cfg = _resolve_settings(submitter_settings)
    return DocumentSubmitter(
        limiter=get_rate_limiter(cfg),
        transport=HttpxTransport(timeout_seconds=cfg.timeout_seconds),
        serializer=JsonDocumentSerializer(),
        endpoint_url=cfg.endpoint_url,
    )


def create_async_document_submitter(
    submitter_settings: SubmitterSettings | None = None,
) -> AsyncDocumentSubmitter:
    """Build an asyncio submitter with its own limiter.

    The limiter is bound to the submitter; share the submitter between tasks
    to share the budget.
    """
    cfg = _resolve_settings(submitter_settings)
    return AsyncDocumentSubmitter(
        limiter=AsyncFixedWindowRateLimiter(
            window_seconds=cfg.rate_limit_window_seconds,
            capacity=cfg.rate_limit_requests,
        ),
        transport=AsyncHttpxTransport(timeout_seconds=cfg.timeout_seconds),
        serializer=JsonDocumentSerializer(),
        endpoint_url=cfg.endpoint_url,
    )
