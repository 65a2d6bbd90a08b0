"""Charset transcoding capability.

The decoders never know how a charset maps to text; they hand labelled bytes
to a transcoder. `CodecTranscoder` is the default one, backed by Python's
codec registry, with an alias table fixed at construction.
"""
from __future__ import annotations

import codecs
from types import MappingProxyType
from typing import Mapping, Optional, Protocol

from .errors import UnsupportedCharset
from .streams import PullReader

# Labels seen in mail whose registered codec is too narrow for real traffic.
DEFAULT_ALIASES: Mapping[str, str] = MappingProxyType({
    "gb2312": "gbk",
})


class CharsetTranscoder(Protocol):
    def decode(self, charset: str, data: bytes) -> str:
        """Return `data` as text, or raise UnsupportedCharset."""
        ...


class StreamingTranscoder(CharsetTranscoder, Protocol):
    def incremental(self, charset: str) -> codecs.IncrementalDecoder:
        ...


class CodecTranscoder:
    def __init__(self, aliases: Mapping[str, str] = DEFAULT_ALIASES, errors: str = "replace"):
        self.aliases = MappingProxyType({k.lower(): v for k, v in aliases.items()})
        self.errors = errors

    def canonical(self, charset: str) -> str:
        """Lowercased name with the alias table applied (`GB2312` -> `gbk`)."""
        # RFC 2231 allows a language suffix: utf-8*en
        name = charset.strip().split("*", 1)[0].lower()
        return self.aliases.get(name, name)

    def _resolve(self, charset: str) -> codecs.CodecInfo:
        try:
            info = codecs.lookup(self.canonical(charset))
        except LookupError:
            raise UnsupportedCharset(charset) from None
        # bytes-to-bytes and str-to-str codecs (base64, rot13) are not charsets
        if not getattr(info, "_is_text_encoding", True):
            raise UnsupportedCharset(charset)
        return info

    def decode(self, charset: str, data: bytes) -> str:
        return data.decode(self._resolve(charset).name, self.errors)

    def incremental(self, charset: str) -> codecs.IncrementalDecoder:
        return self._resolve(charset).incrementaldecoder(self.errors)


default_transcoder = CodecTranscoder()


class TranscodingReader(PullReader):
    """
    Streams a charset-labelled byte source as UTF-8 bytes.
    Multi-byte sequences split across reads are held back until complete.
    """

    component = "transcoding"

    def __init__(self, source, charset: str, transcoder: Optional[StreamingTranscoder] = None,
                 chunk_size: Optional[int] = None):
        super().__init__(source, chunk_size=chunk_size)
        self.charset = charset
        self._decoder = (transcoder or default_transcoder).incremental(charset)

    def _transform(self, chunk: bytes) -> bytes:
        return self._decoder.decode(chunk).encode("utf-8")

    def _flush(self) -> bytes:
        return self._decoder.decode(b"", final=True).encode("utf-8")


def iso_8859_1(source, *, chunk_size: Optional[int] = None) -> TranscodingReader:
    return TranscodingReader(source, "iso-8859-1", chunk_size=chunk_size)


__all__ = [
    "CharsetTranscoder",
    "CodecTranscoder",
    "DEFAULT_ALIASES",
    "StreamingTranscoder",
    "TranscodingReader",
    "default_transcoder",
    "iso_8859_1",
]
