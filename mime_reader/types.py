from __future__ import annotations
from dataclasses import dataclass
from email.utils import formataddr
from enum import Enum


class Encoding(str, Enum):
    BASE64 = "B"
    QUOTED_PRINTABLE = "Q"

    @classmethod
    def parse(cls, tag: str) -> "Encoding":
        return cls(tag.upper())


@dataclass(frozen=True)
class EncodedWord:
    """
    One RFC 2047 token, e.g. `=?utf-8?B?SGk=?=`.
    - `payload` is the text between the third `?` and the closing `?=`.
    - `source` is the token exactly as it appeared in the input.
    """
    charset: str
    encoding: Encoding
    payload: str
    source: str = ""

    def continues(self, other: "EncodedWord") -> bool:
        """True if `other` may be merged into the same decode run."""
        return (self.encoding is other.encoding
                and self.charset.lower() == other.charset.lower())


@dataclass
class Address:
    """
    One mailbox from an address-list header.
    """
    display_name: str = ""                    # already decoded, may be empty
    mailbox: str = ""                         # addr-spec without angle brackets

    def __str__(self) -> str:
        return formataddr((self.display_name, self.mailbox))
