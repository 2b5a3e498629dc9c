from abc import ABC, abstractmethod
from typing import Any


class AbstractDocumentSerializer(ABC):
	"""Interface for converting a submission request into its wire form."""

	@abstractmethod
	def serialize(self, request: Any) -> bytes:
		"""Serialize a request into the bytes sent as the HTTP body.

		Args:
			request: Structured request (pydantic model or plain mapping).

		Returns:
			bytes: Encoded request body.

		Raises:
			SerializationAppError: If the request cannot be encoded.
		"""
		...
