"""
Response dispatch: turns a raw HTTP response into a typed result.

Binary and multipart payloads become blobs before anything tries to read the
body as text. JSON payloads decode into the shape the call site expects; when
that shape is unknown (generic automation calls) it is discovered from the
response's entity tag and looked up in an :class:`EntityTypeRegistry`.
"""

import io
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Mapping, Optional

import requests
from urllib3.exceptions import HTTPError as TransportError

from ..errors import NuxeoClientError
from .blobs import (
    Blob,
    Blobs,
    copy_to_temp_file,
    discard_temp_file,
    filename_from_disposition,
    parse_length,
)
from .media_type import APPLICATION_OCTET_STREAM, MediaKind, MediaType
from .multipart import parse_multipart
from .registry import EntityTypeRegistry

logger = logging.getLogger(__name__)

# Target for call sites that can't know the result shape up front
UNKNOWN = object

DEFAULT_CHARSET = "utf-8"

# A dropped connection surfaces from urllib3 or requests, not as OSError.
BODY_READ_ERRORS = (
    OSError,
    UnicodeDecodeError,
    LookupError,
    TransportError,
    requests.RequestException,
)

_LEGACY_ENTITY_TYPE = re.compile(r'"entity-type"\s*:\s*"([^"]*)"')


@dataclass
class RawResponse:
    """Undecoded response handed to the converter.

    ``body`` is single-pass; the converter closes it.
    """

    content_type: Optional[str]
    body: BinaryIO
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_requests(cls, response: requests.Response) -> "RawResponse":
        """Adapt a response fetched with ``stream=True``."""
        response.raw.decode_content = True
        return cls(
            content_type=response.headers.get("Content-Type"),
            body=response.raw,
            headers=response.headers,
        )

    @classmethod
    def from_bytes(
        cls,
        content: bytes,
        content_type: Optional[str],
        headers: Optional[Mapping[str, str]] = None,
    ) -> "RawResponse":
        return cls(content_type=content_type, body=io.BytesIO(content), headers=headers or {})


def sniff_legacy_entity_type(text: str) -> Optional[str]:
    """
    Find an ``"entity-type":"<value>"`` pair written inside a JSON body.

    Older servers omit the entity type from the Content-Type header; this is a
    plain text scan, not a parse. The first match at any depth wins. A value
    that is blank after trimming counts as not found.
    """
    match = _LEGACY_ENTITY_TYPE.search(text)
    if not match:
        return None
    return match.group(1).strip() or None


class ResponseConverter:
    """
    Converts raw responses into entities, JSON values or blobs.

    Stateless per call; the only shared state is the registry, which is
    injected so each client (or test) owns its own.
    """

    def __init__(self, registry: Optional[EntityTypeRegistry] = None):
        self.registry = registry if registry is not None else EntityTypeRegistry()

    def convert(self, response: RawResponse, target: Any = UNKNOWN) -> Any:
        """
        Convert a response according to its media type.

        Args:
            response: Raw response; its body is closed before returning
            target: Expected shape: ``UNKNOWN``, ``str``, ``dict``/``list``,
                or an entity class with ``from_dict``

        Returns:
            Blob, Blobs, entity, decoded JSON, or raw JSON text

        Raises:
            NuxeoClientError: On read or decode failures
        """
        media_type = MediaType.parse(response.content_type)
        try:
            if not media_type.is_json:
                if media_type.kind is MediaKind.MULTIPART:
                    return self._read_blobs(response, media_type)
                return self._read_blob(response, media_type)

            if target is UNKNOWN:
                return self._read_discovered(response, media_type)
            return self._read_target(response, media_type, target)
        except BODY_READ_ERRORS as e:
            raise NuxeoClientError("Unable to read response body", e) from e
        finally:
            response.body.close()

    def read_json(self, text: str, entity_class: type) -> Any:
        """Decode JSON text into ``entity_class``."""
        try:
            return entity_class.from_dict(json.loads(text))
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise NuxeoClientError("Converter read issue", e) from e

    def _read_blobs(self, response: RawResponse, media_type: MediaType) -> Blobs:
        content = response.body.read()
        blobs = Blobs()
        try:
            for part in parse_multipart(response.content_type or str(media_type), content):
                tmp_file = copy_to_temp_file(io.BytesIO(part.content), part.filename)
                blobs.add(
                    Blob(
                        file=tmp_file,
                        filename=part.filename,
                        mime_type=part.content_type,
                        length=parse_length(part.content_length),
                    )
                )
        except BaseException:
            for blob in blobs:
                discard_temp_file(blob.file)
            raise
        logger.debug(f"Converted multipart response into {len(blobs)} blob(s)")
        return blobs

    def _read_blob(self, response: RawResponse, media_type: MediaType) -> Blob:
        filename = filename_from_disposition(response.headers.get("Content-Disposition"))
        tmp_file = copy_to_temp_file(response.body, filename)
        logger.debug(f"Converted {media_type.essence} response into blob {tmp_file}")
        return Blob(
            file=tmp_file,
            filename=filename,
            mime_type=response.content_type or APPLICATION_OCTET_STREAM,
            length=parse_length(response.headers.get("Content-Length")),
        )

    def _read_discovered(self, response: RawResponse, media_type: MediaType) -> Any:
        text = self._read_text(response, media_type)
        entity_type = media_type.entity_type
        if entity_type is None:
            entity_type = sniff_legacy_entity_type(text)

        entity_class = self.registry.lookup(entity_type)
        if entity_class is None:
            logger.debug(f"No entity registered for '{entity_type}', returning raw JSON")
            return text

        logger.debug(f"Decoding '{entity_type}' entity as {entity_class.__name__}")
        return self.read_json(text, entity_class)

    def _read_target(self, response: RawResponse, media_type: MediaType, target: Any) -> Any:
        if target is str:
            return self._read_text(response, media_type)

        text = self._read_text(response, media_type)
        try:
            data = json.loads(text)
        except ValueError as e:
            raise NuxeoClientError("Converter read issue", e) from e

        if target in (dict, list):
            if not isinstance(data, target):
                raise NuxeoClientError(
                    f"Expected JSON {target.__name__}, got {type(data).__name__}"
                )
            return data
        try:
            return target.from_dict(data)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise NuxeoClientError(f"Unable to decode {getattr(target, '__name__', target)}", e) from e

    def _read_text(self, response: RawResponse, media_type: MediaType) -> str:
        return response.body.read().decode(media_type.charset or DEFAULT_CHARSET)
