"""
Content-Type parsing and classification.

The server tags JSON entities with ``application/json+nxentity`` and may carry
the entity type as a ``nuxeo-entity`` parameter, e.g.::

    application/json+nxentity; charset=UTF-8; nuxeo-entity=document
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

ENTITY_TYPE_PARAMETER = "nuxeo-entity"

APPLICATION_JSON = "application/json"
APPLICATION_JSON_NXENTITY = "application/json+nxentity"
APPLICATION_JSON_NXREQUEST = "application/json+nxrequest"
APPLICATION_OCTET_STREAM = "application/octet-stream"
MULTIPART_RELATED = "multipart/related"

# RFC 7230 token characters
_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_TYPE_SUBTYPE = re.compile(rf"^\s*({_TOKEN})/({_TOKEN})\s*$")


class MediaKind(str, Enum):
    """Dispatch classification of a media type."""

    JSON_ENTITY = "json_entity"
    JSON = "json"
    MULTIPART = "multipart"
    BINARY = "binary"


@dataclass(frozen=True)
class MediaType:
    """Parsed Content-Type value.

    ``type`` and ``subtype`` are always present and lower-cased. Equality for
    dispatch purposes uses :meth:`equals_type_subtype`, which ignores charset
    and other parameters.
    """

    type: str
    subtype: str
    charset: Optional[str] = None
    entity_type: Optional[str] = None
    parameters: dict[str, str] = field(default_factory=dict, compare=False)

    @classmethod
    def parse(cls, header: Optional[str]) -> "MediaType":
        """Parse a Content-Type header, never raising.

        A missing or malformed header yields ``application/octet-stream`` so
        the payload falls through to binary handling.
        """
        if not header:
            return UNKNOWN_MEDIA_TYPE

        head, _, rest = header.partition(";")
        match = _TYPE_SUBTYPE.match(head)
        if not match:
            return UNKNOWN_MEDIA_TYPE

        parameters: dict[str, str] = {}
        for chunk in rest.split(";"):
            name, sep, value = chunk.partition("=")
            name = name.strip().lower()
            if not sep or not name:
                continue
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] == '"':
                value = value[1:-1]
            parameters[name] = value

        return cls(
            type=match.group(1).lower(),
            subtype=match.group(2).lower(),
            charset=parameters.get("charset") or None,
            entity_type=(parameters.get(ENTITY_TYPE_PARAMETER) or "").strip() or None,
            parameters=parameters,
        )

    @property
    def essence(self) -> str:
        """``type/subtype`` without parameters."""
        return f"{self.type}/{self.subtype}"

    def equals_type_subtype(self, other: "MediaType | str") -> bool:
        if isinstance(other, str):
            other = MediaType.parse(other)
        return self.type == other.type and self.subtype == other.subtype

    @property
    def kind(self) -> MediaKind:
        if self.type == "multipart":
            return MediaKind.MULTIPART
        if self.type == "application":
            if self.subtype == "json":
                return MediaKind.JSON
            if self.subtype.startswith("json") or "+json" in self.subtype:
                return MediaKind.JSON_ENTITY
        return MediaKind.BINARY

    @property
    def is_json(self) -> bool:
        return self.kind in (MediaKind.JSON, MediaKind.JSON_ENTITY)

    def __str__(self) -> str:
        params = "".join(f"; {name}={value}" for name, value in self.parameters.items())
        return f"{self.essence}{params}"


UNKNOWN_MEDIA_TYPE = MediaType(type="application", subtype="octet-stream")


def classify(header: Optional[str]) -> MediaKind:
    """Classify a raw Content-Type header."""
    return MediaType.parse(header).kind
