"""Exception taxonomy for the MIME decoders."""

from __future__ import annotations

from typing import List, Optional


class MimeReaderError(Exception):
    """Base class for everything raised by mime_reader."""


class MalformedEncodedWord(MimeReaderError):
    """An `=?charset?enc?payload?=` token that cannot be decoded.

    Never leaves the scanner: the token is emitted as literal text instead.
    """


class MalformedQuotedPrintableEscape(MimeReaderError):
    """A `=` escape that is neither a soft line break nor `=XX`."""


class UnsupportedCharset(MimeReaderError, LookupError):
    def __init__(self, charset: str):
        super().__init__(f"unsupported charset: {charset!r}")
        self.charset = charset


class HeaderMissing(MimeReaderError, KeyError):
    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"header not present: {self.key!r}"


class AddressSyntaxError(MimeReaderError, ValueError):
    """
    Unrecoverable address-list grammar violation.
    `addresses` holds whatever was parsed before `position`.
    """

    def __init__(self, message: str, position: int, addresses: Optional[List] = None):
        super().__init__(f"{message} at position {position}")
        self.position = position
        self.addresses = list(addresses or [])


__all__ = [
    "AddressSyntaxError",
    "HeaderMissing",
    "MalformedEncodedWord",
    "MalformedQuotedPrintableEscape",
    "MimeReaderError",
    "UnsupportedCharset",
]
