#!/usr/bin/env python3
"""Error taxonomy for the Druid result reader."""
from typing import Optional


class DruidJsonError(Exception):
    """Base class for every error raised while reading a Druid result file."""

    def __init__(self, message: str, record: Optional[int] = None, offset: Optional[int] = None):
        if record is not None and offset is not None:
            message = f"result {record}(offset {offset}): {message}"
        super().__init__(message)
        self.record = record
        self.offset = offset


class DruidIOError(DruidJsonError):
    """File could not be opened or read."""


class OutOfMemory(DruidIOError):
    """A column or token buffer could not be grown."""


class ParseError(DruidJsonError):
    """Unexpected character, escape or literal in the input."""


class SchemaViolation(DruidJsonError):
    """A record's labels disagree with the probed schema."""


class TypeCoercionError(DruidJsonError):
    """A metric column holds something other than a number or null."""


class ConfigurationError(Exception):
    """Raised when an environment setting cannot be interpreted."""
