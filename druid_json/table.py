#!/usr/bin/env python3
"""Druid result file exposed as a table: probe once, scan with independent cursors."""
import logging, pathlib
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union

from druid_json.byte_source import BufferedByteSource
from druid_json.config import Settings
from druid_json.cursor import RowCursor
from druid_json.errors import DruidIOError, ParseError
from druid_json.schema import TableSchema, probe_schema

logger = logging.getLogger(__name__)

_STRUCTURES = {b'[': 'array', b'{': 'object'}


def detect_structure(path: Union[str, pathlib.Path]) -> str:
    """Return 'array', 'object', or 'unknown' from the first non-whitespace byte."""
    try:
        with BufferedByteSource.open(path, chunk_size=64) as source:
            first = source.next_byte(advance=False, skip_whitespace=True)
    except DruidIOError as e:
        logger.error("detect structure failed: %s", e)
        return 'unknown'
    return _STRUCTURES.get(first, 'unknown')


class DruidJsonTable:
    """A Druid query result file with its probed schema."""

    def __init__(self, path: Union[str, pathlib.Path], metrics: Optional[Iterable[str]] = None,
                 settings: Optional[Settings] = None):
        self.path = pathlib.Path(path)
        self.settings = settings or Settings.from_env()
        self.metrics = frozenset(metrics or ())
        if detect_structure(self.path) == 'object':
            raise ParseError(f"'{self.path}' holds a JSON object, expected an array of results")
        self.schema: TableSchema = probe_schema(self.path, self.metrics, chunk_size=self.settings.chunk_size)
        logger.info("opened %s with %d columns", self.path, len(self.schema))

    def columns(self) -> List[Tuple[str, bool]]:
        return self.schema.as_pairs()

    def open_cursor(self) -> RowCursor:
        return RowCursor(self.schema, self.path, chunk_size=self.settings.chunk_size)

    def scan(self) -> Iterator[Tuple[Any, ...]]:
        """Yield every row; the file handle is released when the generator is."""
        with self.open_cursor() as cursor:
            yield from cursor

    def count_rows(self) -> int:
        """Count records without converting any value."""
        count = 0
        with self.open_cursor() as cursor:
            while cursor.next():
                count += 1
        return count
