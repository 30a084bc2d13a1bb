"""
Structured header parsing

Parses the parameterised-list grammar of the structured header draft that
signed exchanges use for the Signature header, e.g.

    sig1; sig=*MEUCIQ...*; integrity="digest/mi-sha256-03"; date=1511128380
"""

import base64
import binascii
import string
from typing import Any, Dict, List

from .types import ParameterisedIdentifier
from ..exceptions import StructuredHeaderError

_IDENTIFIER_START = set(string.ascii_lowercase)
_IDENTIFIER_CHARS = _IDENTIFIER_START | set(string.digits) | set("_-*/")
_BASE64_CHARS = set(string.ascii_letters + string.digits + "+/=")
_MAX_INTEGER_DIGITS = 19


class _Parser:
    """Recursive-descent parser over a single header value"""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def error(self, message: str) -> StructuredHeaderError:
        return StructuredHeaderError(
            f"{message} at offset {self.pos}",
            "INVALID_STRUCTURED_HEADER",
            {'input': self.text, 'offset': self.pos}
        )

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def skip_ows(self) -> None:
        while self.peek() in (" ", "\t") and not self.at_end():
            self.pos += 1

    def parse_parameterised_list(self) -> List[ParameterisedIdentifier]:
        items: List[ParameterisedIdentifier] = []
        self.skip_ows()
        while True:
            items.append(self.parse_parameterised_identifier())
            self.skip_ows()
            if self.at_end():
                return items
            if self.peek() != ",":
                raise self.error("Expected ','")
            self.pos += 1
            self.skip_ows()
            if self.at_end():
                raise self.error("Trailing ','")

    def parse_parameterised_identifier(self) -> ParameterisedIdentifier:
        label = self.parse_identifier()
        params: Dict[str, Any] = {}
        while True:
            self.skip_ows()
            if self.peek() != ";":
                break
            self.pos += 1
            self.skip_ows()
            name = self.parse_identifier()
            if name in params:
                raise self.error(f"Duplicate parameter '{name}'")
            value = None
            if self.peek() == "=":
                self.pos += 1
                value = self.parse_item()
            params[name] = value
        return ParameterisedIdentifier(label=label, params=params)

    def parse_item(self) -> Any:
        c = self.peek()
        if c == "-" or c.isdigit():
            return self.parse_integer()
        if c == '"':
            return self.parse_string()
        if c == "*":
            return self.parse_binary()
        if c in _IDENTIFIER_START:
            return self.parse_identifier()
        raise self.error("Unexpected character in item")

    def parse_identifier(self) -> str:
        if self.peek() not in _IDENTIFIER_START or self.at_end():
            raise self.error("Expected identifier")
        start = self.pos
        while not self.at_end() and self.peek() in _IDENTIFIER_CHARS:
            self.pos += 1
        return self.text[start:self.pos]

    def parse_integer(self) -> int:
        start = self.pos
        if self.peek() == "-":
            self.pos += 1
        digits_start = self.pos
        while not self.at_end() and self.peek().isdigit():
            self.pos += 1
        digits = self.pos - digits_start
        if digits == 0:
            raise self.error("Expected digits")
        if digits > _MAX_INTEGER_DIGITS:
            raise self.error("Integer too long")
        return int(self.text[start:self.pos])

    def parse_string(self) -> str:
        self.pos += 1
        chars: List[str] = []
        while not self.at_end():
            c = self.peek()
            self.pos += 1
            if c == "\\":
                if self.peek() not in ('"', "\\") or self.at_end():
                    raise self.error("Invalid escape in string")
                chars.append(self.peek())
                self.pos += 1
            elif c == '"':
                return "".join(chars)
            elif not (" " <= c <= "~"):
                raise self.error("Invalid character in string")
            else:
                chars.append(c)
        raise self.error("Unterminated string")

    def parse_binary(self) -> bytes:
        self.pos += 1
        start = self.pos
        while not self.at_end() and self.peek() != "*":
            if self.peek() not in _BASE64_CHARS:
                raise self.error("Invalid character in binary content")
            self.pos += 1
        if self.at_end():
            raise self.error("Unterminated binary content")
        encoded = self.text[start:self.pos]
        self.pos += 1
        # Padding is optional in the draft
        encoded += "=" * (-len(encoded) % 4)
        try:
            return base64.b64decode(encoded, validate=True)
        except binascii.Error as e:
            raise self.error(f"Invalid base64 in binary content: {e}")


def parse_parameterised_list(value: str) -> List[ParameterisedIdentifier]:
    """
    Parse a parameterised list header value

    Args:
        value: Raw header value

    Returns:
        List[ParameterisedIdentifier]: Members in order of appearance

    Raises:
        StructuredHeaderError: If the value is malformed
    """
    if not value or not value.strip():
        raise StructuredHeaderError("Empty parameterised list", "INVALID_STRUCTURED_HEADER")
    return _Parser(value).parse_parameterised_list()
