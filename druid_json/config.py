#!/usr/bin/env python3
"""Environment driven settings."""
import os, logging
from dataclasses import dataclass
from typing import Mapping, Optional

from druid_json.errors import ConfigurationError

DEFAULT_CHUNK_SIZE = 1024
DEFAULT_PROGRESS_EVERY = 100000
DEFAULT_PORT = 8000


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    progress_every: int = DEFAULT_PROGRESS_EVERY
    log_level: str = 'INFO'
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Build settings from ``os.environ`` (or the mapping given)."""
        env = os.environ if env is None else env
        level = env.get('DRUID_JSON_LOG_LEVEL', 'INFO').upper()
        if env.get('DEBUG', '').lower() in ('1', 'true', 'yes'):
            level = 'DEBUG'
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigurationError(f"DRUID_JSON_LOG_LEVEL: unknown level {level!r}")
        return cls(
            chunk_size=_int_setting(env, 'DRUID_JSON_CHUNK_SIZE', DEFAULT_CHUNK_SIZE),
            progress_every=_int_setting(env, 'DRUID_JSON_PROGRESS_EVERY', DEFAULT_PROGRESS_EVERY),
            log_level=level,
            port=_int_setting(env, 'PORT', DEFAULT_PORT),
        )
