#!/usr/bin/env python3
"""Forward-only row cursor over a Druid result file."""
import logging, pathlib, re
from typing import Any, List, Optional, Tuple, Union

from druid_json.byte_source import BufferedByteSource
from druid_json.config import DEFAULT_CHUNK_SIZE
from druid_json.errors import DruidIOError, OutOfMemory, ParseError, SchemaViolation, TypeCoercionError
from druid_json.field_reader import FieldReader, FieldResult, FieldStatus
from druid_json.scanner import ValueKind
from druid_json.schema import TableSchema

logger = logging.getLogger(__name__)

EXHAUSTED = -1

# Longest decimal prefix, the way strtod reads it.
_DECIMAL_PREFIX = re.compile(rb'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')


def parse_decimal(text: bytes) -> float:
    m = _DECIMAL_PREFIX.match(text)
    if m is None:
        return 0.0
    return float(m.group(0))


class RowCursor:
    """Pull rows one at a time; every row must match ``schema`` label for label.

    Row ids start at 1 for the first record. ``EXHAUSTED`` marks both the
    clean end of the scan and a failed scan.
    """

    def __init__(self, schema: TableSchema, path: Union[str, pathlib.Path],
                 chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.schema = schema
        self.path = path
        self._reader = FieldReader(BufferedByteSource.open(path, chunk_size))
        n = len(schema)
        self._values = [bytearray() for _ in range(n)]
        self._kinds: List[Optional[ValueKind]] = [None] * n
        self._row_id = 0
        self._row_record = 0

    @property
    def row_id(self) -> int:
        return self._row_id

    @property
    def offset(self) -> int:
        """Bytes consumed from the file so far."""
        return self._reader.ctx.offset

    def is_exhausted(self) -> bool:
        return self._row_id < 0

    def _clear(self, i: int) -> None:
        del self._values[i][:]
        self._kinds[i] = None

    def _fail(self) -> None:
        self._row_id = EXHAUSTED
        for i in range(len(self.schema)):
            self._clear(i)

    def _store(self, i: int, res: FieldResult) -> None:
        try:
            self._values[i][:] = res.value
        except MemoryError:
            self._fail()
            raise OutOfMemory("out of memory", record=self._row_record, offset=self._reader.ctx.offset)
        self._kinds[i] = res.kind

    def next(self) -> bool:
        """Advance to the next row. Returns False once the scan is over."""
        if self._row_id < 0:
            return False
        reader = self._reader
        columns = self.schema.columns
        self._row_record = reader.record
        i = 0
        while True:
            try:
                res = reader.read_one_field()
            except DruidIOError:
                self._fail()
                raise
            if res.status is FieldStatus.FAILURE:
                self._fail()
                raise res.error
            if res.status is FieldStatus.END_OF_STREAM:
                break
            if i >= len(columns):
                self._fail()
                raise SchemaViolation(f"unexpected column '{res.label}' beyond the {len(columns)} probed",
                                      record=self._row_record, offset=reader.ctx.offset)
            if res.label != columns[i].name:
                self._fail()
                raise SchemaViolation(
                    f"druid json order change is not supported (expected '{columns[i].name}' got '{res.label}')",
                    record=self._row_record, offset=reader.ctx.offset)
            self._store(i, res)
            i += 1
            if res.status is FieldStatus.LAST_FIELD:
                break

        if res.status is FieldStatus.END_OF_STREAM:
            self._fail()
            if i > 0:
                raise ParseError("unexpected end of input inside a record",
                                 record=self._row_record, offset=reader.ctx.offset)
            logger.debug("%s exhausted after %d rows", self.path, self._row_record)
            return False

        self._row_id += 1
        for j in range(i, len(columns)):
            self._clear(j)
        return True

    def kind_at(self, i: int) -> Optional[ValueKind]:
        if not 0 <= i < len(self.schema):
            raise IndexError(f"column {i} out of range")
        return self._kinds[i]

    def value_at(self, i: int) -> Any:
        """Column value: ``float``/``None`` for metrics, raw text otherwise."""
        kind = self.kind_at(i)
        if kind is None:
            return None
        column = self.schema.columns[i]
        raw = self._values[i]
        if column.is_metric:
            if kind is ValueKind.NUMBER:
                return parse_decimal(bytes(raw))
            if kind is ValueKind.NULL:
                return None
            text = raw.decode('utf-8', errors='replace')
            self._fail()
            raise TypeCoercionError(
                f"unexpected JSON value inside a metric, got {column.name}='{text}', "
                f"expected JSON_NUMBER / JSON_NULL",
                record=self._row_record, offset=self._reader.ctx.offset)
        return raw.decode('utf-8', errors='replace')

    def row(self) -> Tuple[Any, ...]:
        return tuple(self.value_at(i) for i in range(len(self.schema)))

    def rewind(self) -> None:
        """Restart the scan; the next call to ``next()`` reads record 1 again."""
        self._reader.rewind()
        self._row_id = 0
        self._row_record = 0
        for i in range(len(self.schema)):
            self._clear(i)

    def close(self) -> None:
        self._reader.ctx.source.close()
        self._fail()

    def __iter__(self):
        return self

    def __next__(self) -> Tuple[Any, ...]:
        if not self.next():
            raise StopIteration
        return self.row()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
