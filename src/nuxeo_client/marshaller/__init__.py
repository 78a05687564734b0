"""
Response marshalling.

Provides:
- Content-Type parsing and classification (JSON entity, JSON, multipart, binary)
- Entity type registry for server-defined entity tags
- Blob materialization of single-pass streams into temporary files
- Response conversion into entities, raw JSON or blobs
"""

from .blobs import Blob, Blobs, copy_to_temp_file
from .converter import UNKNOWN, RawResponse, ResponseConverter, sniff_legacy_entity_type
from .media_type import MediaKind, MediaType, classify
from .registry import EntityTypeRegistry

__all__ = [
    "Blob",
    "Blobs",
    "EntityTypeRegistry",
    "MediaKind",
    "MediaType",
    "RawResponse",
    "ResponseConverter",
    "UNKNOWN",
    "classify",
    "copy_to_temp_file",
    "sniff_legacy_entity_type",
]
