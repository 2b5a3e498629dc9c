"""JSON serializer adapter."""

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from docgate.adapters.serialization.base import AbstractDocumentSerializer
from docgate.core.errors import SerializationAppError


class JsonDocumentSerializer(AbstractDocumentSerializer):
    """Encode requests as UTF-8 JSON.

    Pydantic models are dumped with their wire aliases; plain mappings are
    dumped as-is, so their keys must already be wire names.
    """

    def __init__(self, *, exclude_none: bool = False, ensure_ascii: bool = False) -> None:
        self.exclude_none = exclude_none
        self.ensure_ascii = ensure_ascii

    def serialize(self, request: Any) -> bytes:
        """Serialize a request into a JSON body.

        Args:
            request: Pydantic model or mapping of JSON-compatible values.

        Returns:
            bytes: UTF-8 encoded JSON document.

        Raises:
            SerializationAppError: If the request type is unsupported or a value
                cannot be represented in JSON.
        """
        try:
            if isinstance(request, BaseModel):
                data = request.model_dump(
                    mode="json",
                    by_alias=True,
                    exclude_none=self.exclude_none,
                )
            elif isinstance(request, Mapping):
                data = dict(request)
            else:
                raise TypeError(f"Unsupported request type: {type(request).__name__}")

            return json.dumps(
                data,
                ensure_ascii=self.ensure_ascii,
                allow_nan=False,
            ).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise SerializationAppError(
                code="serialization_failed",
                message=f"Request could not be serialized to JSON: {exc}",
                details={
                    "request_type": type(request).__name__,
                    "error_type": type(exc).__name__,
                },
            ) from exc
