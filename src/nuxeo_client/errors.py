"""
Exception hierarchy for the Nuxeo client.
"""

from typing import Optional


class NuxeoError(Exception):
    """Base exception for Nuxeo client errors."""

    pass


class NuxeoClientError(NuxeoError):
    """Local failure while reading or converting a response.

    Always wraps the underlying IO or decode failure, available as ``cause``
    (and as ``__cause__`` when raised with ``from``).
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message if cause is None else f"{message}: {cause}")


class NuxeoRemoteError(NuxeoError):
    """Server returned a non-success response."""

    def __init__(self, status_code: int, message: str, response_body: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(message)

    def __repr__(self) -> str:
        return f"NuxeoRemoteError(status_code={self.status_code}, message={self.message!r})"


class NuxeoConnectionError(NuxeoError):
    """Failed to connect to the Nuxeo server."""

    pass
