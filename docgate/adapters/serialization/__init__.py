"""Serializer adapters - turn submission requests into request bodies."""

from docgate.adapters.serialization.base import AbstractDocumentSerializer
from docgate.adapters.serialization.json_serializer import JsonDocumentSerializer

__all__ = [
    "AbstractDocumentSerializer",
    "JsonDocumentSerializer",
]
