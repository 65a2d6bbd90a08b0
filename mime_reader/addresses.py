"""Address-list parsing for From/To/Cc style header fields."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

import structlog

from .charsets import CharsetTranscoder
from .config import get_config
from .decoder import decode_header_str
from .errors import AddressSyntaxError, HeaderMissing
from .types import Address

log = structlog.get_logger()


class _Unit:
    """One comma-separated address while it is being read."""

    def __init__(self):
        self.phrase: List[str] = []   # quotes stripped, escapes resolved
        self.raw: List[str] = []      # source text outside <> minus comments
        self.mailbox: List[str] = []
        self.in_angle = False
        self.has_angle = False
        self._space = False

    def text(self, ch: str) -> None:
        if self.in_angle:
            self.mailbox.append(ch)
            return
        self.raw.append(ch)
        if ch in " \t":
            if not self._space:
                self.phrase.append(" ")
            self._space = True
        else:
            self.phrase.append(ch)
            self._space = False

    def quoted(self, ch: str, escaped: bool = False) -> None:
        source = "\\" + ch if escaped else ch
        if self.in_angle:
            self.mailbox.append(source)
            return
        self.raw.append(source)
        self.phrase.append(ch)
        self._space = False

    def quote_mark(self) -> None:
        (self.mailbox if self.in_angle else self.raw).append('"')

    def is_empty(self) -> bool:
        return not (self.has_angle or "".join(self.raw).strip())


class AddressListParser:
    """
    Splits an address-list value into Address entries.

    Flat state over the characters: comment depth, an in-quote flag, the
    current unit and whether we are inside a group. Display names are
    RFC 2047 decoded after quotes are stripped; mailboxes are left as-is.
    """

    def __init__(self, transcoder: Optional[CharsetTranscoder] = None, *,
                 best_effort: Optional[bool] = None, literal_charset: Optional[str] = None):
        self.transcoder = transcoder
        self.best_effort = best_effort
        self.literal_charset = literal_charset or get_config().literal_charset

    def parse(self, value: str | bytes) -> List[Address]:
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode(self.literal_charset, "replace")

        addresses: List[Address] = []
        unit = _Unit()
        depth = comment_start = angle_start = quote_start = 0
        in_quote = in_group = False
        i, n = 0, len(value)
        while i < n:
            ch = value[i]
            if ch in "\r\n":
                # folding; positions stay relative to the raw value
                i += 1
                continue
            if depth:
                if ch == "\\":
                    i += 1
                elif ch == "(":
                    depth += 1
                elif ch == ")":
                    depth -= 1
            elif in_quote:
                if ch == "\\" and i + 1 < n:
                    i += 1
                    unit.quoted(value[i], escaped=True)
                elif ch == '"':
                    in_quote = False
                    unit.quote_mark()
                else:
                    unit.quoted(ch)
            elif ch == '"':
                in_quote, quote_start = True, i
                unit.quote_mark()
            elif ch == "(":
                depth, comment_start = 1, i
            elif unit.in_angle:
                if ch == ">":
                    unit.in_angle = False
                else:
                    unit.text(ch)
            elif ch == "<":
                unit.in_angle = unit.has_angle = True
                angle_start = i
            elif ch == ",":
                self._finish(unit, addresses)
                unit = _Unit()
            elif ch == ":" and not in_group:
                # group name is not an address
                in_group = True
                unit = _Unit()
            elif ch == ";" and in_group:
                self._finish(unit, addresses)
                unit = _Unit()
                in_group = False
            else:
                unit.text(ch)
            i += 1

        if depth:
            self._fail("unterminated comment", comment_start, addresses)
        if in_quote:
            self._fail("unterminated quoted string", quote_start, addresses)
        if unit.in_angle:
            self._fail("unterminated angle address", angle_start, addresses)
        self._finish(unit, addresses)
        return addresses

    def _finish(self, unit: _Unit, addresses: List[Address]) -> None:
        if unit.is_empty():
            return
        if unit.has_angle:
            mailbox = "".join(unit.mailbox).strip()
            name = decode_header_str("".join(unit.phrase).strip(), self.transcoder,
                                     best_effort=self.best_effort).strip()
        else:
            mailbox, name = "".join(unit.raw).strip(), ""
        if mailbox:
            addresses.append(Address(display_name=name, mailbox=mailbox))

    def _fail(self, message: str, position: int, addresses: List[Address]) -> None:
        log.warning("address_syntax_error", reason=message, position=position, parsed=len(addresses))
        raise AddressSyntaxError(message, position, addresses)


def _field_value(header_fields: Any, key: str) -> str | bytes:
    get_all = getattr(header_fields, "get_all", None)
    if callable(get_all):
        values = get_all(key)
    else:
        fields: Mapping = header_fields
        wanted = key.lower()
        values = next((v for k, v in fields.items() if k.lower() == wanted), None)
    if values is None:
        raise HeaderMissing(key)
    if not isinstance(values, (str, bytes, bytearray)):
        values = list(values)
        if not values:
            raise HeaderMissing(key)
        values = values[0]
    if not isinstance(values, (str, bytes, bytearray)):
        # email.header.Header and friends
        values = str(values)
    return values


def parse_address_list(value: str | bytes, transcoder: Optional[CharsetTranscoder] = None,
                       **options) -> List[Address]:
    return AddressListParser(transcoder, **options).parse(value)


def address_list(header_fields: Any, key: str, transcoder: Optional[CharsetTranscoder] = None,
                 **options) -> List[Address]:
    """
    Parse the address-list header `key` from `header_fields`.
    `header_fields` is an email.message.Message or a mapping of header name
    to a value or list of values; names match case-insensitively and the
    first value wins.
    """
    return parse_address_list(_field_value(header_fields, key), transcoder, **options)


__all__ = ["AddressListParser", "address_list", "parse_address_list"]
