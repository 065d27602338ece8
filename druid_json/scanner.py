#!/usr/bin/env python3
"""JSON primitive scanner: strings, numbers and the three literals."""
import enum
from dataclasses import dataclass, field
from typing import Optional

from druid_json.byte_source import EOF, BufferedByteSource
from druid_json.errors import ParseError


class ValueKind(enum.Enum):
    STRING = 'string'
    NUMBER = 'number'
    TRUE = 'true'
    FALSE = 'false'
    NULL = 'null'


# Superset of valid JSON number text; '1-2' or '1e+e' are accepted verbatim.
NUMBER_CHARS = frozenset(bytes([c]) for c in b'0123456789.eE-+')
NUMBER_START = frozenset(bytes([c]) for c in b'0123456789.-')

ESCAPES = {
    b'"': b'"',
    b'\\': b'\\',
    b'/': b'/',
    b'b': b'\b',
    b'n': b'\n',
    b'r': b'\r',
    b't': b'\t',
}

LITERALS = {
    b'n': (b'null', ValueKind.NULL),
    b't': (b'true', ValueKind.TRUE),
    b'f': (b'false', ValueKind.FALSE),
}


def is_number_char(c: bytes) -> bool:
    return c in NUMBER_CHARS


def show(c: bytes) -> str:
    """Printable form of a byte for error messages."""
    if c == EOF:
        return 'EOF'
    return c.decode('latin-1')


@dataclass
class ReaderContext:
    """Mutable state shared by the scanner and the field reader."""
    source: BufferedByteSource
    record: int = 0
    inside_event: bool = False
    fields_in_record: int = 0
    label: bytearray = field(default_factory=bytearray)
    value: bytearray = field(default_factory=bytearray)
    value_kind: ValueKind = ValueKind.NULL
    error: Optional[ParseError] = None

    @property
    def offset(self) -> int:
        return self.source.offset

    def reset(self) -> None:
        self.record = 0
        self.inside_event = False
        self.fields_in_record = 0
        self.label.clear()
        self.value.clear()
        self.value_kind = ValueKind.NULL
        self.error = None


class TokenScanner:
    def __init__(self, ctx: ReaderContext):
        self.ctx = ctx

    def error(self, message: str) -> ParseError:
        return ParseError(message, record=self.ctx.record, offset=self.ctx.offset)

    def read_string(self, into: bytearray) -> None:
        """Append string content up to the closing quote to ``into``.

        The opening quote must already be consumed. ``\\u`` escapes are kept
        as written, the four hex digits included.
        """
        src = self.ctx.source
        while True:
            c = src.next_byte(True)
            if c == b'"':
                return
            if c == EOF:
                raise self.error("unexpected end of input inside a string")
            if c == b'\\':
                e = src.next_byte(True)
                if e in ESCAPES:
                    into += ESCAPES[e]
                elif e == b'u':
                    into += b'\\u'
                else:
                    raise self.error(f"unexpected escape char '{show(e)}'")
                continue
            into += c

    def consume_literal(self, first: bytes, word: bytes) -> None:
        src = self.ctx.source
        value = self.ctx.value
        value += first
        for expected in word[1:]:
            c = src.next_byte(True)
            value += c
            if c != bytes([expected]):
                raise self.error(
                    f"consume_literal: unexpected '{show(c)}' character (expected '{word.decode()}')")

    def consume_number(self, first: bytes) -> None:
        src = self.ctx.source
        value = self.ctx.value
        value += first
        c = src.next_byte(False)
        while is_number_char(c):
            src.advance()
            value += c
            c = src.next_byte(False)

    def read_value(self) -> ValueKind:
        """Read one scalar into ``ctx.value`` and return its kind."""
        ctx = self.ctx
        ctx.value.clear()
        c = ctx.source.next_byte(True, skip_whitespace=True)
        if c == b'"':
            self.read_string(ctx.value)
            kind = ValueKind.STRING
        elif c in LITERALS:
            word, kind = LITERALS[c]
            self.consume_literal(c, word)
        elif c in NUMBER_START:
            self.consume_number(c)
            kind = ValueKind.NUMBER
        else:
            raise self.error(f"read_value: unexpected '{show(c)}' character")
        ctx.value_kind = kind
        return kind
