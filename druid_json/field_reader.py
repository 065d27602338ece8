#!/usr/bin/env python3
"""Field-at-a-time reader that flattens a nested ``"event": {...}`` object.

Druid groupBy results wrap the dimensions and metrics of every row in an
``event`` object::

    [{"version": "v1", "timestamp": "...", "event": {"clicks": 5, "cost": 1.5}}]

The reader hands out ``version``, ``timestamp``, ``clicks`` and ``cost`` as
if they were all declared on the outer record. Flattening is one level deep.
"""
import enum, logging
from typing import Iterator, List, NamedTuple, Optional, Tuple

from druid_json.byte_source import EOF, BufferedByteSource
from druid_json.errors import ParseError
from druid_json.scanner import ReaderContext, TokenScanner, ValueKind, show

logger = logging.getLogger(__name__)

EVENT_LABEL = b'event'


class FieldStatus(enum.Enum):
    FIELD = 'field'
    LAST_FIELD = 'last_field'
    END_OF_STREAM = 'end_of_stream'
    FAILURE = 'failure'


class FieldResult(NamedTuple):
    status: FieldStatus
    label: Optional[str] = None
    value: Optional[bytes] = None
    kind: Optional[ValueKind] = None
    error: Optional[ParseError] = None

    @property
    def text(self) -> Optional[str]:
        if self.value is None:
            return None
        return self.value.decode('utf-8', errors='replace')


END_OF_STREAM = FieldResult(FieldStatus.END_OF_STREAM)

Record = List[Tuple[str, str, ValueKind]]


class FieldReader:
    def __init__(self, source: BufferedByteSource):
        self.ctx = ReaderContext(source)
        self.scanner = TokenScanner(self.ctx)

    @property
    def record(self) -> int:
        """Zero-based index of the record being read."""
        return self.ctx.record

    def rewind(self) -> None:
        self.ctx.source.rewind()
        self.ctx.reset()

    def read_one_field(self) -> FieldResult:
        """Read the next ``"label": value`` pair.

        Never raises for malformed input; a ``FAILURE`` result carries the
        ``ParseError`` instead. I/O errors still propagate.
        """
        try:
            return self._read_one_field()
        except ParseError as e:
            self.ctx.error = e
            return FieldResult(FieldStatus.FAILURE, error=e)

    def _read_one_field(self) -> FieldResult:
        ctx = self.ctx
        src = ctx.source
        scanner = self.scanner
        ctx.label.clear()
        ctx.value.clear()

        while True:
            c = src.next_byte(True, skip_prefix=True)
            if c == EOF:
                return END_OF_STREAM
            if c == b']' and ctx.fields_in_record == 0 and not ctx.inside_event:
                # closing bracket of the result array
                return END_OF_STREAM
            if c != b'"':
                raise scanner.error(f"expected '\"' got '{show(c)}' character")
            scanner.read_string(ctx.label)
            c = src.next_byte(True, skip_whitespace=True)
            if c != b':':
                raise scanner.error(f"expected ':' got '{show(c)}' character")
            if ctx.label != EVENT_LABEL:
                break
            if ctx.inside_event:
                raise scanner.error("'event' object nested inside 'event' is not supported")
            c = src.next_byte(False, skip_whitespace=True)
            if c != b'{':
                raise scanner.error(f"expected '{{' after \"event\" got '{show(c)}' character")
            ctx.inside_event = True
            ctx.label.clear()

        kind = scanner.read_value()
        label = ctx.label.decode('utf-8', errors='replace')
        value = bytes(ctx.value)

        c = src.next_byte(True, skip_whitespace=True)
        if c != b',' and c != b'}':
            raise scanner.error(f"expected ',' or '}}' got '{show(c)}' character")
        if c == b'}' and ctx.inside_event:
            # end of the nested object; the outer record may carry on
            ctx.inside_event = False
            c = src.next_byte(False, skip_whitespace=True)
            if c == b',':
                ctx.fields_in_record += 1
                return FieldResult(FieldStatus.FIELD, label, value, kind)
            if c != b'}':
                raise scanner.error(f"expected ',' or '}}' got '{show(c)}' character")
            src.advance()

        if c == b'}':
            ctx.record += 1
            ctx.fields_in_record = 0
            if src.next_byte(False, skip_whitespace=True) == b']':
                src.advance()
            return FieldResult(FieldStatus.LAST_FIELD, label, value, kind)

        ctx.fields_in_record += 1
        return FieldResult(FieldStatus.FIELD, label, value, kind)

    def iter_records(self) -> Iterator[Record]:
        """Yield every remaining record as ``(label, text, kind)`` triples."""
        fields: Record = []
        while True:
            res = self.read_one_field()
            if res.status is FieldStatus.FAILURE:
                raise res.error
            if res.status is FieldStatus.END_OF_STREAM:
                if fields:
                    raise ParseError("unexpected end of input inside a record",
                                     record=self.ctx.record, offset=self.ctx.offset)
                return
            fields.append((res.label, res.text, res.kind))
            if res.status is FieldStatus.LAST_FIELD:
                yield fields
                fields = []
