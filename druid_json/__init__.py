"""Stream Druid query results as schema-bearing rows."""

__version__ = "0.1.0"

from druid_json.errors import (
    DruidJsonError, DruidIOError, OutOfMemory, ParseError, SchemaViolation, TypeCoercionError,
)
from druid_json.scanner import ValueKind
from druid_json.schema import Column, TableSchema, probe_schema, parse_metric_names
from druid_json.cursor import RowCursor
from druid_json.table import DruidJsonTable, detect_structure

__all__ = [
    "__version__",
    "DruidJsonError", "DruidIOError", "OutOfMemory", "ParseError", "SchemaViolation", "TypeCoercionError",
    "ValueKind", "Column", "TableSchema", "probe_schema", "parse_metric_names",
    "RowCursor", "DruidJsonTable", "detect_structure",
]
