"""Pull-based byte stream adapters.

Every decoder wraps (and owns) the reader beneath it and only pulls the next
chunk from it when its own caller asks for more bytes than it has ready.
"""
from __future__ import annotations

import io
from typing import Optional

import structlog

from .config import get_config

log = structlog.get_logger()


def as_binary_source(source):
    """
    Accept raw bytes or anything with a `read(size)` returning bytes.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(source))
    if isinstance(source, str) or not hasattr(source, "read"):
        raise TypeError(f"expected bytes or a binary reader, got {type(source).__name__}")
    return source


def read_source(source, size: int, component: str):
    """Read from `source`, tagging any failure with the active component."""
    try:
        return source.read(size)
    except Exception as exc:
        log.debug("source_read_failed", component=component, error=str(exc))
        exc.add_note(f"raised while the {component} decoder was reading its source")
        raise


class PullReader(io.RawIOBase):
    """
    Base class for streaming byte transforms.
    Subclasses implement `_transform(chunk)` and optionally `_flush()`;
    both return the bytes that became ready.
    """

    component = "reader"

    def __init__(self, source, chunk_size: Optional[int] = None):
        super().__init__()
        self._source = as_binary_source(source)
        self._chunk_size = chunk_size or get_config().chunk_size
        self._ready = bytearray()
        self._eof = False

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed reader")
        while not self._ready and not self._eof:
            chunk = read_source(self._source, self._chunk_size, self.component)
            if chunk:
                self._ready += self._transform(bytes(chunk))
            else:
                self._eof = True
                self._ready += self._flush()
        n = min(len(b), len(self._ready))
        b[:n] = self._ready[:n]
        del self._ready[:n]
        return n

    def close(self) -> None:
        if not self.closed:
            close = getattr(getattr(self, "_source", None), "close", None)
            if close is not None:
                close()
        super().close()

    def _transform(self, chunk: bytes) -> bytes:
        raise NotImplementedError

    def _flush(self) -> bytes:
        return b""


class LinelessReader(PullReader):
    """Drops every CR and LF byte, so wrapped text reads as one run."""

    component = "lineless"

    def _transform(self, chunk: bytes) -> bytes:
        return chunk.translate(None, b"\r\n")


def remove_line_breaks(source, *, chunk_size: Optional[int] = None) -> LinelessReader:
    """
    Stream `source` with all line breaks removed (not normalized).
    """
    return LinelessReader(source, chunk_size=chunk_size)


__all__ = ["LinelessReader", "PullReader", "as_binary_source", "read_source", "remove_line_breaks"]
