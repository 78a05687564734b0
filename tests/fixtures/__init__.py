"""
Test fixtures for response conversion.

This module provides sample server payloads and stream helpers:
- document.json / documents.json / user.json: entity payloads
- TrackingStream / FailingStream: streams that record being closed
- truncated_server: a local server that hangs up mid-body
- build_multipart: multipart bodies with named parts
"""

import io
import json
import socketserver
import threading
from contextlib import contextmanager
from pathlib import Path

from nuxeo_client.marshaller import RawResponse

FIXTURES_DIR = Path(__file__).parent

BOUNDARY = "nxboundary42"


def load_fixture(name: str) -> str:
    """Load a fixture file as string."""
    filepath = FIXTURES_DIR / name
    return filepath.read_text(encoding="utf-8")


def load_json_fixture(name: str) -> dict:
    return json.loads(load_fixture(name))


class TrackingStream(io.BytesIO):
    """BytesIO that counts close() calls."""

    def __init__(self, content: bytes = b""):
        super().__init__(content)
        self.close_count = 0

    def close(self) -> None:
        self.close_count += 1
        super().close()


class FailingStream(io.RawIOBase):
    """Stream that yields some bytes then fails mid-read."""

    def __init__(self, head: bytes = b"partial", error: Exception = None):
        self._head = head
        self._error = error or OSError("connection reset by peer")
        self.close_count = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self._head:
            n = len(self._head)
            buffer[:n] = self._head
            self._head = b""
            return n
        raise self._error

    def close(self) -> None:
        self.close_count += 1
        super().close()


def build_multipart(parts: list[tuple[str, str, bytes]], boundary: str = BOUNDARY) -> bytes:
    """Build a multipart body from (filename, content_type, content) tuples."""
    lines: list[bytes] = []
    for filename, content_type, content in parts:
        lines.extend([
            f"--{boundary}".encode(),
            f"Content-Type: {content_type}".encode(),
            f'Content-Disposition: attachment; filename="{filename}"'.encode(),
            f"Content-Length: {len(content)}".encode(),
            b"",
            content,
        ])
    lines.append(f"--{boundary}--".encode())
    lines.append(b"")
    return b"\r\n".join(lines)


def json_response(data, content_type: str = "application/json+nxentity", headers=None) -> RawResponse:
    """RawResponse over a JSON body, backed by a TrackingStream."""
    return text_response(json.dumps(data), content_type, headers)


def text_response(text: str, content_type: str = "application/json", headers=None) -> RawResponse:
    return RawResponse(
        content_type=content_type,
        body=TrackingStream(text.encode("utf-8")),
        headers=headers or {},
    )


@contextmanager
def truncated_server(content_type: str, body: bytes, declared_length: int = 100000):
    """Serve responses that promise ``declared_length`` bytes, send ``body`` and hang up."""

    class Handler(socketserver.BaseRequestHandler):
        def handle(self):
            received = b""
            while b"\r\n\r\n" not in received:
                chunk = self.request.recv(4096)
                if not chunk:
                    return
                received += chunk
            head = (
                "HTTP/1.1 200 OK\r\n"
                f"Content-Type: {content_type}\r\n"
                f"Content-Length: {declared_length}\r\n"
                "Connection: close\r\n\r\n"
            )
            self.request.sendall(head.encode("ascii") + body)

    server = socketserver.TCPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = server.server_address
        yield f"http://{host}:{port}"
    finally:
        server.shutdown()
        server.server_close()
