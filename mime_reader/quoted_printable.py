"""Streaming quoted-printable decoding (RFC 2045 bodies, RFC 2047 "Q" words)."""

from __future__ import annotations

from typing import Optional, Tuple

from .errors import MalformedQuotedPrintableEscape
from .streams import PullReader

_HEX = b"0123456789ABCDEF"


def _escape_at(data: bytes, i: int, final: bool) -> Tuple[bytes, int] | None:
    """
    Resolve the `=` at data[i].
    Returns (decoded bytes, length consumed), or None when the escape runs
    past the end of `data` and more input may complete it.
    """
    j = i + 1
    while j < len(data) and data[j] in b" \t":
        j += 1
    if j > i + 1:
        # whitespace added by transport between a soft break `=` and the EOL
        if data[j:j + 1] == b"\n":
            return b"", j + 1 - i
        if data[j:j + 2] == b"\r\n":
            return b"", j + 2 - i
        if not final and data[j:] in (b"", b"\r"):
            return None
        raise MalformedQuotedPrintableEscape(f"invalid escape {data[i:j + 1]!r}")
    rest = data[i + 1:i + 3]
    if rest[:1] == b"\n":
        return b"", 2
    if rest == b"\r\n":
        return b"", 3
    if len(rest) == 2 and rest[0] in _HEX and rest[1] in _HEX:
        return bytes([int(rest, 16)]), 3
    if not final and len(rest) < 2 and (not rest or rest == b"\r" or rest[0] in _HEX):
        return None
    raise MalformedQuotedPrintableEscape(f"invalid escape {data[i:i + 3]!r}")


def decode_qp_bytes(data: bytes, final: bool = True, keep_breaks: bool = True) -> Tuple[bytes, bytes]:
    """
    Decode as much of `data` as can be decided now.
    Returns (decoded, tail); `tail` must be prepended to the next chunk.
    Malformed escapes are emitted literally, never raised.
    """
    out = bytearray()
    i, n = 0, len(data)
    while i < n:
        j = data.find(b"=", i)
        if j < 0:
            j = n
        literal = data[i:j]
        out += literal if keep_breaks else literal.translate(None, b"\r\n")
        i = j
        if i >= n:
            break
        try:
            escaped = _escape_at(data, i, final)
        except MalformedQuotedPrintableEscape:
            # keep the `=` and rescan what follows it as ordinary bytes
            out += b"="
            i += 1
            continue
        if escaped is None:
            return bytes(out), data[i:]
        decoded, consumed = escaped
        out += decoded
        i += consumed
    return bytes(out), b""


def decode_q_word(payload: bytes) -> bytes:
    """RFC 2047 "Q" payload: `_` is a space, `=XX` as in quoted-printable."""
    decoded, _ = decode_qp_bytes(payload.replace(b"_", b" "), final=True, keep_breaks=False)
    return decoded


class QuotedPrintableReader(PullReader):
    """
    Pull-based quoted-printable decoder.
    With preserve_line_breaks=False hard line breaks are dropped as well as
    soft ones; encoded `=0D=0A` is data and always survives.
    """

    component = "quoted-printable"

    def __init__(self, source, preserve_line_breaks: bool = True, chunk_size: Optional[int] = None):
        super().__init__(source, chunk_size=chunk_size)
        self.preserve_line_breaks = preserve_line_breaks
        self._tail = b""

    def _transform(self, chunk: bytes) -> bytes:
        decoded, self._tail = decode_qp_bytes(self._tail + chunk, final=False,
                                              keep_breaks=self.preserve_line_breaks)
        return decoded

    def _flush(self) -> bytes:
        decoded, self._tail = decode_qp_bytes(self._tail, final=True,
                                              keep_breaks=self.preserve_line_breaks)
        return decoded


def decode_quoted_printable(source, preserve_line_breaks: bool = True, *,
                            chunk_size: Optional[int] = None) -> QuotedPrintableReader:
    return QuotedPrintableReader(source, preserve_line_breaks, chunk_size=chunk_size)


__all__ = ["QuotedPrintableReader", "decode_q_word", "decode_qp_bytes", "decode_quoted_printable"]
