"""Streaming decoders for MIME header and body text."""

from .addresses import AddressListParser, address_list, parse_address_list
from .charsets import (
    DEFAULT_ALIASES,
    CharsetTranscoder,
    CodecTranscoder,
    TranscodingReader,
    default_transcoder,
    iso_8859_1,
)
from .config import DecoderConfig, get_config
from .decoder import EncodedWordReader, decode_encoded_words, decode_header_str
from .errors import (
    AddressSyntaxError,
    HeaderMissing,
    MalformedEncodedWord,
    MalformedQuotedPrintableEscape,
    MimeReaderError,
    UnsupportedCharset,
)
from .quoted_printable import QuotedPrintableReader, decode_quoted_printable
from .streams import LinelessReader, remove_line_breaks
from .types import Address, EncodedWord, Encoding

__all__ = [
    "Address",
    "AddressListParser",
    "AddressSyntaxError",
    "CharsetTranscoder",
    "CodecTranscoder",
    "DEFAULT_ALIASES",
    "DecoderConfig",
    "EncodedWord",
    "EncodedWordReader",
    "Encoding",
    "HeaderMissing",
    "LinelessReader",
    "MalformedEncodedWord",
    "MalformedQuotedPrintableEscape",
    "MimeReaderError",
    "QuotedPrintableReader",
    "TranscodingReader",
    "UnsupportedCharset",
    "address_list",
    "decode_encoded_words",
    "decode_header_str",
    "decode_quoted_printable",
    "default_transcoder",
    "get_config",
    "iso_8859_1",
    "parse_address_list",
    "remove_line_breaks",
]
