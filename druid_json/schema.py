#!/usr/bin/env python3
"""Table schema and the one-record schema probe."""
import logging, pathlib
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from druid_json.byte_source import BufferedByteSource
from druid_json.config import DEFAULT_CHUNK_SIZE
from druid_json.errors import ParseError, SchemaViolation
from druid_json.field_reader import FieldReader, FieldStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Column:
    name: str
    is_metric: bool = False

    @property
    def declared_type(self) -> str:
        return 'REAL' if self.is_metric else 'TEXT'


@dataclass(frozen=True)
class TableSchema:
    """Ordered columns fixed from the first record of a result file."""
    columns: Tuple[Column, ...]

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self) -> Iterator[Column]:
        return iter(self.columns)

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def metric_flags(self) -> List[bool]:
        return [c.is_metric for c in self.columns]

    def index_of(self, name: str) -> int:
        for i, c in enumerate(self.columns):
            if c.name == name:
                return i
        raise KeyError(name)

    def as_pairs(self) -> List[Tuple[str, bool]]:
        return [(c.name, c.is_metric) for c in self.columns]

    def declared_types(self) -> List[str]:
        return [c.declared_type for c in self.columns]


def parse_metric_names(text: Optional[str]) -> List[str]:
    """Split ``"clicks, cost"`` into ``['clicks', 'cost']``."""
    if not text:
        return []
    return [name.strip() for name in text.split(',') if name.strip()]


def _count_first_record(reader: FieldReader) -> int:
    count = 0
    while True:
        res = reader.read_one_field()
        if res.status is FieldStatus.FAILURE:
            raise res.error
        if res.status is FieldStatus.END_OF_STREAM:
            if count == 0:
                raise ParseError("no result record to read a schema from")
            raise ParseError("unexpected end of input inside the first record",
                             record=reader.record, offset=reader.ctx.offset)
        count += 1
        if res.status is FieldStatus.LAST_FIELD:
            return count


def probe_schema(path: Union[str, pathlib.Path], metrics: Optional[Iterable[str]] = None,
                 chunk_size: int = DEFAULT_CHUNK_SIZE) -> TableSchema:
    """Fix column names, order and metric flags from the first record."""
    metric_names = frozenset(metrics or ())
    with BufferedByteSource.open(path, chunk_size) as source:
        reader = FieldReader(source)
        n_cols = _count_first_record(reader)
        reader.rewind()

        columns = []
        seen = set()
        for _ in range(n_cols):
            res = reader.read_one_field()
            if res.status is FieldStatus.FAILURE:
                raise res.error
            if res.label in seen:
                raise SchemaViolation(f"duplicate column '{res.label}'",
                                      record=0, offset=reader.ctx.offset)
            seen.add(res.label)
            columns.append(Column(res.label, res.label in metric_names))
        reader.rewind()

    missing = metric_names - seen
    if missing:
        logger.warning("metrics not present in %s: %s", path, ', '.join(sorted(missing)))
    schema = TableSchema(tuple(columns))
    logger.debug("probed %s: %s", path, schema.as_pairs())
    return schema
