"""
Multipart body framing, on top of the stdlib ``email`` parser.
"""

from dataclasses import dataclass
from email import policy
from email.parser import BytesParser
from typing import Iterator, Optional

from ..errors import NuxeoClientError


@dataclass
class BodyPart:
    """One decoded part of a multipart body."""

    content: bytes
    content_type: str
    filename: Optional[str] = None
    content_length: Optional[str] = None


def parse_multipart(content_type: str, body: bytes) -> Iterator[BodyPart]:
    """
    Split a multipart body into its parts, in wire order.

    Args:
        content_type: Full Content-Type header, including the boundary
        body: Raw body bytes

    Raises:
        NuxeoClientError: If the body is not a well-formed multipart message
    """
    header = f"Content-Type: {content_type}\r\nMIME-Version: 1.0\r\n\r\n".encode("ascii", "replace")
    message = BytesParser(policy=policy.default).parsebytes(header + body)
    if not message.is_multipart():
        raise NuxeoClientError(f"Response is not a multipart body: {content_type}")
    if message.defects:
        raise NuxeoClientError(f"Malformed multipart body: {message.defects[0]!r}")

    for part in message.iter_parts():
        if part.is_multipart() or part.get_content_maintype() == "message":
            raise NuxeoClientError(f"Nested part is not supported: {part.get_content_type()}")
        payload = part.get_payload(decode=True)
        yield BodyPart(
            content=payload if payload is not None else b"",
            content_type=part.get_content_type(),
            filename=part.get_filename(),
            content_length=part.get("Content-Length"),
        )
