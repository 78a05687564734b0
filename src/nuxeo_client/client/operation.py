"""
Automation operation invocation.

The result shape of an operation isn't known up front, so results are
converted with the ``UNKNOWN`` target and discovered from the response's
entity type unless the caller asks for something specific.
"""

import json
import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional, Union

from urllib3.filepost import choose_boundary

from ..marshaller import UNKNOWN, Blob, Blobs
from ..marshaller.media_type import APPLICATION_JSON_NXREQUEST, MULTIPART_RELATED
from ..objects import Document, Documents

if TYPE_CHECKING:
    from .client import NuxeoClient

logger = logging.getLogger(__name__)

OperationInput = Union[str, Document, Documents, Blob, Blobs, list]


def input_reference(value: Any) -> str:
    """Render a document (or documents) input as an automation reference."""
    if isinstance(value, Document):
        return f"doc:{value.id or value.path}"
    if isinstance(value, (Documents, list)):
        return "docs:" + ",".join(
            (doc.id or doc.path or "") if isinstance(doc, Document) else str(doc) for doc in value
        )
    return str(value)


def _param_value(value: Any) -> Any:
    if isinstance(value, Document):
        return value.id or value.path
    return value


def encode_multipart_related(request: dict, blobs: Iterable[Blob]) -> tuple[bytes, str]:
    """
    Build a ``multipart/related`` body: the JSON request first, then one part per blob.

    Returns:
        Tuple of (body, content_type)
    """
    boundary = choose_boundary()
    lines: list[bytes] = [
        f"--{boundary}".encode("ascii"),
        f"Content-Type: {APPLICATION_JSON_NXREQUEST}; charset=UTF-8".encode("ascii"),
        b"Content-Transfer-Encoding: 8bit",
        b"Content-ID: request",
        b"",
        json.dumps(request).encode("utf-8"),
    ]
    for index, blob in enumerate(blobs):
        filename = (blob.filename or f"blob-{index}").replace('"', "")
        lines.extend([
            f"--{boundary}".encode("ascii"),
            f"Content-Type: {blob.mime_type}".encode("ascii"),
            b"Content-Transfer-Encoding: binary",
            f'Content-Disposition: attachment; filename="{filename}"'.encode("utf-8"),
            f"Content-ID: input{index}".encode("ascii"),
            b"",
            blob.read_bytes(),
        ])
    lines.append(f"--{boundary}--".encode("ascii"))
    lines.append(b"")

    content_type = (
        f'{MULTIPART_RELATED}; boundary="{boundary}"; '
        f'type="{APPLICATION_JSON_NXREQUEST}"; start="request"'
    )
    return b"\r\n".join(lines), content_type


class Operation:
    """Fluent builder for an automation call, e.g.::

        client.operation("Document.Query").param("query", nxql).execute()
    """

    def __init__(self, client: "NuxeoClient", operation_id: str):
        self.client = client
        self.operation_id = operation_id
        self._params: dict[str, Any] = {}
        self._context: dict[str, Any] = {}
        self._input: Optional[OperationInput] = None

    def param(self, name: str, value: Any) -> "Operation":
        self._params[name] = _param_value(value)
        return self

    def params(self, values: dict[str, Any]) -> "Operation":
        for name, value in values.items():
            self.param(name, value)
        return self

    def context(self, name: str, value: Any) -> "Operation":
        self._context[name] = value
        return self

    def input(self, value: OperationInput) -> "Operation":
        self._input = value
        return self

    def _blob_input(self) -> Optional[list[Blob]]:
        if isinstance(self._input, Blob):
            return [self._input]
        if isinstance(self._input, Blobs):
            return list(self._input)
        if isinstance(self._input, list) and self._input and all(
            isinstance(item, Blob) for item in self._input
        ):
            return list(self._input)
        return None

    def to_request(self) -> dict:
        """JSON request body (without blob input)."""
        request: dict[str, Any] = {"params": dict(self._params), "context": dict(self._context)}
        if self._input is not None and self._blob_input() is None:
            request["input"] = input_reference(self._input)
        return request

    def execute(self, target: Any = UNKNOWN) -> Any:
        """
        Run the operation.

        Args:
            target: Expected result shape; ``UNKNOWN`` discovers it from the response

        Returns:
            Converted result (entity, raw JSON text, Blob or Blobs)
        """
        endpoint = self.client.api_path(f"automation/{self.operation_id}")
        blobs = self._blob_input()
        if blobs is not None:
            body, content_type = encode_multipart_related(self.to_request(), blobs)
        else:
            body = json.dumps(self.to_request()).encode("utf-8")
            content_type = APPLICATION_JSON_NXREQUEST

        logger.debug(f"Executing operation {self.operation_id}")
        return self.client.call(
            "POST",
            endpoint,
            target=target,
            data=body,
            headers={"Content-Type": content_type},
        )
