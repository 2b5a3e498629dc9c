"""Logging for submission and rate limit events.

docgate logs dotted event names (``submission.sent``, ``submission.failed``,
``rate_limit.rollover``, ``rate_limit.configured``) with a fixed set of
structured fields. The formatter renders exactly those fields, so anything
else attached to a record (a signature, a request body) never reaches a sink.

Handlers are attached to the ``docgate`` logger only; the host application
keeps ownership of the root logger.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from docgate.core.config import LogSettings, settings

PACKAGE_LOGGER = "docgate"

_submission_id_var: ContextVar[str | None] = ContextVar("submission_id", default=None)

# Structured fields carried by docgate events, in render order
EVENT_FIELDS: tuple[str, ...] = (
    "submission_id",
    "state",
    "failed_during",
    "status_code",
    "error_code",
    "error_type",
    "body_bytes",
    "duration_ms",
    "capacity",
    "window_s",
    "unused_permits",
)

# Marks handlers installed by configure_logging so reconfiguring replaces them
_HANDLER_MARK = "_docgate_handler"


def set_submission_id(submission_id: str | None) -> None:
    """Store the current submission id in a context variable."""

    _submission_id_var.set(submission_id)


def get_submission_id() -> str | None:
    """Fetch the current submission id from context."""

    return _submission_id_var.get()


def clear_submission_id() -> None:
    """Clear any stored submission id from context."""

    _submission_id_var.set(None)


def event_fields(record: LogRecord) -> dict[str, Any]:
    """Collect the docgate event fields present on a record.

    Args:
        record: Record emitted by a docgate logger.

    Returns:
        Mapping of field name to value, in ``EVENT_FIELDS`` order, skipping
        fields that are absent or None.
    """

    fields: dict[str, Any] = {}
    for name in EVENT_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            fields[name] = value
    return fields


class SubmissionIdFilter(logging.Filter):
    """Attach submission_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "submission_id", None) is None:
            submission_id = get_submission_id()
            if submission_id:
                record.submission_id = submission_id
        return True


class EventFormatter(logging.Formatter):
    """Render a docgate event as one JSON object or one ``key=value`` line.

    JSON output:
        {"timestamp": "...", "level": "warning", "logger": "...",
         "event": "submission.failed", "failed_during": "sending", ...}

    Plain output:
        2024-01-16T10:00:00+00:00 WARNING docgate.services... submission.failed failed_during=sending
    """

    def __init__(self, *, json_output: bool = True) -> None:
        super().__init__()
        self.json_output = json_output

    def format(self, record: LogRecord) -> str:  # noqa: D401
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        fields = event_fields(record)

        if self.json_output:
            data: dict[str, Any] = {
                "timestamp": timestamp,
                "level": record.levelname.lower(),
                "logger": record.name,
                "event": record.getMessage(),
            }
            data.update(fields)
            if record.exc_info:
                data["exc_info"] = self.formatException(record.exc_info)
            return json.dumps(data, default=str)

        parts = [timestamp, record.levelname, record.name, record.getMessage()]
        parts.extend(f"{name}={value}" for name, value in fields.items())
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    """Construct the stdout or (rotating) file handler the settings ask for."""

    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(log_settings.file_path or "logs/docgate.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes:
        return RotatingFileHandler(
            file_path,
            maxBytes=log_settings.max_bytes,
            backupCount=log_settings.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(file_path, encoding="utf-8")


def _installed_handlers(package_logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in package_logger.handlers if getattr(h, _HANDLER_MARK, False)]


def configure_logging(log_settings: LogSettings | None = None) -> logging.Handler:
    """Install the docgate event handler, replacing a previously installed one.

    Args:
        log_settings: Optional log settings; defaults to global settings if omitted.

    Returns:
        The handler now attached to the ``docgate`` logger.
    """

    cfg = log_settings or settings.log
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    for old in _installed_handlers(package_logger):
        package_logger.removeHandler(old)
        old.close()

    handler = _build_handler(cfg)
    setattr(handler, _HANDLER_MARK, True)
    handler.addFilter(SubmissionIdFilter())
    handler.setFormatter(EventFormatter(json_output=cfg.format.lower() != "plain"))

    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))
    return handler


def ensure_logging_configured(log_settings: LogSettings | None = None) -> None:
    """Configure docgate logging once; later calls keep the existing handler."""

    if not _installed_handlers(logging.getLogger(PACKAGE_LOGGER)):
        configure_logging(log_settings)


def reset_logging() -> None:
    """Remove and close the handler installed by :func:`configure_logging`."""

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in _installed_handlers(package_logger):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
