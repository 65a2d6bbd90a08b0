"""Helpers for decoding RFC 2047 encoded words in header text."""

from __future__ import annotations

import base64
import binascii
import codecs
import io
import re
from typing import Iterable, List, Optional

import structlog

from .charsets import CharsetTranscoder, default_transcoder
from .config import get_config
from .errors import MalformedEncodedWord, UnsupportedCharset
from .quoted_printable import decode_q_word
from .streams import read_source
from .types import EncodedWord, Encoding

log = structlog.get_logger()

_TOKEN = re.compile(r"=\?([^?\s]+)\?([BbQq])\?([^?\s]*)\?=")
# Longest prefix of input that could still grow into a token.
_PARTIAL = re.compile(r"=\?[^?\s]*(?:\?(?:[BbQq](?:\?[^?\s]*(?:\?=?)?)?)?)?")
_LWSP = re.compile(r"[ \t\r\n]*")


def b64_decode(payloads: Iterable[bytes]) -> bytes:
    """
    Decode the base64 payloads of one run.
    Payload text is joined until a padded end, so a quantum split across
    two words still decodes; every padded group is decoded on its own.
    """
    out = bytearray()
    pending = b""
    for payload in payloads:
        pending += payload
        if pending.endswith(b"="):
            out += _b64_group(pending)
            pending = b""
    if pending:
        out += _b64_group(pending)
    return bytes(out)


def _b64_group(encoded: bytes) -> bytes:
    stripped = encoded.rstrip(b"=")
    try:
        return base64.b64decode(stripped + b"=" * (-len(stripped) % 4), validate=True)
    except binascii.Error as exc:
        raise MalformedEncodedWord(f"invalid base64 payload {encoded!r}") from exc


def _word(match: re.Match) -> EncodedWord:
    charset, tag, payload = match.groups()
    return EncodedWord(charset, Encoding.parse(tag), payload, match.group(0))


class _TextSource:
    """
    Presents str, bytes, or a reader of either as a reader of str.
    Bytes are decoded with `charset`; encoded words are ASCII either way.
    """

    def __init__(self, source, charset: str):
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        elif isinstance(source, str):
            source = io.StringIO(source)
        elif not hasattr(source, "read"):
            raise TypeError(f"expected text, bytes or a reader, got {type(source).__name__}")
        self._source = source
        self._charset = charset
        self._decoder = None

    def read(self, size: int) -> str:
        data = read_source(self._source, size, EncodedWordReader.component)
        if isinstance(data, str):
            return data
        if self._decoder is None:
            self._decoder = codecs.getincrementaldecoder(self._charset)("replace")
        # an incremental decoder may hold back a partial sequence; keep pulling
        text = self._decoder.decode(data, final=not data)
        while data and not text:
            data = read_source(self._source, size, EncodedWordReader.component)
            text = self._decoder.decode(data, final=not data)
        return text

    def close(self) -> None:
        close = getattr(self._source, "close", None)
        if close is not None:
            close()


class EncodedWordReader(io.TextIOBase):
    """
    Streaming RFC 2047 scanner.

    Literal text is passed through as soon as it is known not to start a
    token. Adjacent words with the same charset and encoding, separated only
    by whitespace, form one run: their payloads are decoded together and the
    whitespace between them is dropped. Malformed tokens come out literally.
    """

    component = "encoded-word"

    def __init__(
        self,
        source,
        transcoder: Optional[CharsetTranscoder] = None,
        *,
        best_effort: Optional[bool] = None,
        literal_charset: Optional[str] = None,
        chunk_size: Optional[int] = None,
    ):
        super().__init__()
        config = get_config()
        self._source = _TextSource(source, literal_charset or config.literal_charset)
        self._transcoder = transcoder or default_transcoder
        self.best_effort = config.best_effort if best_effort is None else best_effort
        self._chunk_size = chunk_size or config.chunk_size
        self._buf = ""
        self._ready = ""
        self._run: List[EncodedWord] = []
        self._run_text: List[str] = []
        self._eof = False

    def readable(self) -> bool:
        return True

    def read(self, size: Optional[int] = -1) -> str:
        if self.closed:
            raise ValueError("I/O operation on closed reader")
        if size is None or size < 0:
            while not self._eof:
                self._fill()
            text, self._ready = self._ready, ""
            return text
        while len(self._ready) < size and not self._eof:
            self._fill()
        text, self._ready = self._ready[:size], self._ready[size:]
        return text

    def readall(self) -> str:
        return self.read()

    def readline(self, size: Optional[int] = -1) -> str:
        if self.closed:
            raise ValueError("I/O operation on closed reader")
        limit = -1 if size is None else size
        while "\n" not in self._ready and not self._eof and (limit < 0 or len(self._ready) < limit):
            self._fill()
        end = self._ready.find("\n") + 1 or len(self._ready)
        if limit >= 0:
            end = min(end, limit)
        text, self._ready = self._ready[:end], self._ready[end:]
        return text

    def close(self) -> None:
        if not self.closed and hasattr(self, "_source"):
            self._source.close()
        super().close()

    def _fill(self) -> None:
        chunk = self._source.read(self._chunk_size)
        if chunk:
            self._buf += chunk
        else:
            self._eof = True
        self._scan(final=self._eof)

    def _scan(self, final: bool) -> None:
        buf, pos = self._buf, 0
        try:
            while pos < len(buf) or self._run:
                if self._run:
                    end = _LWSP.match(buf, pos).end()
                    if end == len(buf) and not final:
                        break
                    if buf.startswith("=?", end):
                        m = _TOKEN.match(buf, end)
                        if m is None and not final and _PARTIAL.match(buf, end).end() == len(buf):
                            break
                        word = _word(m) if m is not None else None
                        if word is not None and self._run[0].continues(word):
                            self._run.append(word)
                            self._run_text.append(buf[pos:m.end()])
                            pos = m.end()
                            continue
                    elif not final and end == len(buf) - 1 and buf.endswith("="):
                        break
                    # whitespace before whatever ends the run stays literal
                    self._flush_run()
                    continue

                start = buf.find("=?", pos)
                if start < 0:
                    stop = len(buf) - 1 if not final and buf.endswith("=") else len(buf)
                    stop = max(stop, pos)
                    self._ready += buf[pos:stop]
                    pos = stop
                    break
                self._ready += buf[pos:start]
                pos = start
                m = _TOKEN.match(buf, pos)
                if m is not None:
                    word = _word(m)
                    self._run = [word]
                    self._run_text = [word.source]
                    pos = m.end()
                    continue
                fail = _PARTIAL.match(buf, pos).end()
                if fail == len(buf) and not final:
                    break
                log.debug("encoded_word_malformed", text=buf[pos:fail])
                # only the `=?` is known to be literal; a token may start inside the rest
                self._ready += buf[pos:pos + 2]
                pos += 2
        finally:
            self._buf = buf[pos:]

    def _flush_run(self) -> None:
        run, source = self._run, "".join(self._run_text)
        self._run, self._run_text = [], []
        try:
            self._ready += self._decode_run(run)
        except MalformedEncodedWord as exc:
            log.debug("encoded_word_malformed", text=source, error=str(exc))
            self._ready += source
        except UnsupportedCharset as exc:
            log.warning("charset_unsupported", charset=exc.charset, best_effort=self.best_effort)
            if not self.best_effort:
                raise
            self._ready += source

    def _decode_run(self, run: List[EncodedWord]) -> str:
        try:
            payloads = [word.payload.encode("ascii") for word in run]
        except UnicodeEncodeError as exc:
            raise MalformedEncodedWord("non-ASCII payload") from exc
        if run[0].encoding is Encoding.BASE64:
            data = b64_decode(payloads)
        else:
            data = decode_q_word(b"".join(payloads))
        return self._transcoder.decode(run[0].charset, data)


def decode_encoded_words(source, transcoder: Optional[CharsetTranscoder] = None,
                         **options) -> EncodedWordReader:
    """
    Stream `source` with every RFC 2047 encoded word replaced by its text.
    Keyword options are those of EncodedWordReader.
    """
    return EncodedWordReader(source, transcoder, **options)


def decode_header_str(value: str | bytes | None, transcoder: Optional[CharsetTranscoder] = None,
                      **options) -> str:
    """
    Decode RFC 2047 encoded words into a single Unicode string.
    """
    if value is None:
        return ""
    with decode_encoded_words(value, transcoder, **options) as reader:
        return reader.read()


__all__ = ["EncodedWordReader", "b64_decode", "decode_encoded_words", "decode_header_str"]
