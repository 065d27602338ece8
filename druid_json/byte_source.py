#!/usr/bin/env python3
"""Chunked, refillable byte reader over a Druid result file."""
import logging, pathlib
from typing import BinaryIO, Optional, Union

from druid_json.config import DEFAULT_CHUNK_SIZE
from druid_json.errors import DruidIOError

logger = logging.getLogger(__name__)

EOF = b''

WHITESPACE = frozenset((b' ', b'\t', b'\n', b'\r'))
# Container punctuation stepped over when looking for the next label.
STRUCTURAL_PREFIX = frozenset((b',', b'{', b'['))
WHITESPACE_OR_PREFIX = WHITESPACE | STRUCTURAL_PREFIX


def is_space(c: bytes) -> bool:
    return c in WHITESPACE


def is_space_or_prefix(c: bytes) -> bool:
    return c in WHITESPACE_OR_PREFIX


class BufferedByteSource:
    """Read a file one byte at a time through a fixed size buffer.

    ``offset`` counts every byte consumed (skipped or advanced past) since
    the last rewind and is what error messages report.
    """

    def __init__(self, stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE, name: Optional[str] = None):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._stream = stream
        self.chunk_size = chunk_size
        self.name = name or getattr(stream, 'name', '<stream>')
        self._buf = b''
        self._pos = 0
        self.offset = 0

    @classmethod
    def open(cls, path: Union[str, pathlib.Path], chunk_size: int = DEFAULT_CHUNK_SIZE) -> 'BufferedByteSource':
        try:
            stream = open(path, 'rb')
        except OSError as e:
            raise DruidIOError(f"cannot open '{path}' for reading") from e
        return cls(stream, chunk_size, name=str(path))

    @property
    def closed(self) -> bool:
        return self._stream is None

    def _refill(self) -> bool:
        try:
            self._buf = self._stream.read(self.chunk_size)
        except OSError as e:
            raise DruidIOError(f"read failed on '{self.name}' at offset {self.offset}") from e
        self._pos = 0
        return len(self._buf) > 0

    def advance(self) -> None:
        self._pos += 1
        self.offset += 1

    def next_byte(self, advance: bool = True, skip_whitespace: bool = False, skip_prefix: bool = False) -> bytes:
        """Return the next byte, or ``EOF``.

        Bytes matched by ``skip_whitespace`` / ``skip_prefix`` are consumed
        on the way. The returned byte is only consumed when ``advance`` is set,
        so ``advance=False`` is a peek.
        """
        while True:
            if self._pos >= len(self._buf):
                if self._stream is None or not self._refill():
                    return EOF
            c = self._buf[self._pos:self._pos + 1]
            if (skip_prefix and is_space_or_prefix(c)) or (skip_whitespace and is_space(c)):
                self.advance()
                continue
            if advance:
                self.advance()
            return c

    def rewind(self) -> None:
        if self._stream is None:
            raise DruidIOError(f"cannot rewind closed source '{self.name}'")
        self._stream.seek(0)
        self._buf = b''
        self._pos = 0
        self.offset = 0
        logger.debug("rewound %s", self.name)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        self._buf = b''
        self._pos = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
