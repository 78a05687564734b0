"""
File blobs and the temp-file materializer.

Response bodies are single-pass streams; a blob copies them into a temporary
file so callers can read them again after the response is gone.
"""

import logging
import mimetypes
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from ..errors import NuxeoClientError
from .media_type import APPLICATION_OCTET_STREAM

logger = logging.getLogger(__name__)

TEMP_FILE_PREFIX = "nuxeo-blob-"


def copy_to_temp_file(stream: BinaryIO, suggested_name: Optional[str] = None) -> Path:
    """
    Copy a stream into a new temporary file and close the stream.

    Args:
        stream: Readable binary stream; closed on every exit path
        suggested_name: Optional filename whose extension is kept as suffix

    Returns:
        Path of the temporary file

    Raises:
        NuxeoClientError: If the stream can't be read or the file can't be written

    Any other error raised while reading the stream propagates unchanged; the
    partial file is removed either way.
    """
    suffix = Path(suggested_name).suffix if suggested_name else ""
    tmp_path: Optional[str] = None
    completed = False
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, suffix=suffix)
        with os.fdopen(fd, "wb") as f:
            shutil.copyfileobj(stream, f)
        completed = True
    except OSError as e:
        raise NuxeoClientError("Unable to copy stream to temporary file", e) from e
    finally:
        stream.close()
        if not completed and tmp_path is not None:
            discard_temp_file(tmp_path)

    logger.debug(f"Materialized stream to {tmp_path}")
    return Path(tmp_path)


def discard_temp_file(path) -> None:
    """Remove a materialized file, ignoring one that is already gone."""
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def filename_from_disposition(content_disposition: Optional[str]) -> Optional[str]:
    """Extract the filename from a Content-Disposition header, if any."""
    if not content_disposition or "filename=" not in content_disposition:
        return None
    value = content_disposition.split("filename=", 1)[1].split(";", 1)[0]
    value = value.strip().strip("\"'")
    return value or None


def parse_length(value: Optional[str]) -> int:
    """Parse a Content-Length header, -1 when absent or invalid."""
    try:
        return int(value) if value is not None else -1
    except ValueError:
        return -1


@dataclass
class Blob:
    """A file-backed blob, readable any number of times."""

    file: Path
    filename: Optional[str] = None
    mime_type: str = APPLICATION_OCTET_STREAM
    length: int = -1

    @classmethod
    def from_file(cls, path: Path | str, mime_type: Optional[str] = None) -> "Blob":
        """Wrap an existing local file, e.g. for upload."""
        path = Path(path)
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or APPLICATION_OCTET_STREAM
        return cls(file=path, filename=path.name, mime_type=mime_type, length=path.stat().st_size)

    def open(self) -> BinaryIO:
        return open(self.file, "rb")

    def read_bytes(self) -> bytes:
        return self.file.read_bytes()

    def read_text(self, encoding: str = "utf-8") -> str:
        return self.file.read_text(encoding=encoding)


@dataclass
class Blobs:
    """Ordered collection of blobs, in wire order."""

    entries: list[Blob] = field(default_factory=list)

    def add(self, blob: Blob) -> None:
        self.entries.append(blob)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Blob]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> Blob:
        return self.entries[index]

    @property
    def filenames(self) -> list[Optional[str]]:
        return [blob.filename for blob in self.entries]
