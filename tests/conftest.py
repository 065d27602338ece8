#!/usr/bin/env python3
"""Shared pytest fixtures for the druid_json test suite."""

import pytest
import json
import pathlib
import sys
from typing import Any, Callable, List

# Add parent directory to path for imports
sys.path.insert(0, str(pathlib.Path(__file__).parent.parent))

from tests.fixtures.generate_test_data import (
    generate_timeseries_json,
    generate_groupby_json,
    generate_truncated_json,
    generate_drifting_json,
)


# ============================================================================
# File Fixtures
# ============================================================================

@pytest.fixture
def write_json(tmp_path) -> Callable[..., pathlib.Path]:
    """Write raw text (or a Python value as JSON) to a file under tmp_path."""
    counter = {"n": 0}

    def _write(content: Any, name: str = None) -> pathlib.Path:
        counter["n"] += 1
        path = tmp_path / (name or f"result_{counter['n']}.json")
        text = content if isinstance(content, str) else json.dumps(content)
        path.write_text(text, encoding='utf-8')
        return path

    return _write


@pytest.fixture
def timeseries_file(tmp_path) -> pathlib.Path:
    """Flat timeseries result with 100 records."""
    json_file = tmp_path / "timeseries.json"
    generate_timeseries_json(100, str(json_file))
    return json_file


@pytest.fixture
def groupby_file(tmp_path) -> pathlib.Path:
    """groupBy result with 50 event-nested records, pretty printed."""
    json_file = tmp_path / "groupby.json"
    generate_groupby_json(50, str(json_file))
    return json_file


@pytest.fixture
def large_groupby_file(tmp_path) -> pathlib.Path:
    """groupBy result spanning many read chunks."""
    json_file = tmp_path / "large_groupby.json"
    generate_groupby_json(5000, str(json_file), indent=None)
    return json_file


@pytest.fixture
def truncated_file(tmp_path) -> pathlib.Path:
    json_file = tmp_path / "truncated.json"
    generate_truncated_json(20, 37, str(json_file))
    return json_file


@pytest.fixture
def drifting_file(tmp_path) -> pathlib.Path:
    """Labels swap order from the second record on."""
    json_file = tmp_path / "drifting.json"
    generate_drifting_json(5, 1, str(json_file))
    return json_file


# ============================================================================
# Schema Fixtures
# ============================================================================

@pytest.fixture
def groupby_metrics() -> List[str]:
    return ["clicks", "impressions", "cost"]


@pytest.fixture
def groupby_schema(groupby_file, groupby_metrics):
    from druid_json.schema import probe_schema
    return probe_schema(groupby_file, groupby_metrics)


# ============================================================================
# FastAPI Test Client
# ============================================================================

@pytest.fixture
def fastapi_client():
    """Create a FastAPI test client for the inspection service."""
    from fastapi.testclient import TestClient
    from druid_json.service import app

    return TestClient(app)


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture
def clean_environment(monkeypatch):
    """Ensure a clean environment for tests."""
    env_vars_to_remove = ['DRUID_JSON_CHUNK_SIZE', 'DRUID_JSON_PROGRESS_EVERY',
                          'DRUID_JSON_LOG_LEVEL', 'DEBUG', 'PORT']
    for var in env_vars_to_remove:
        monkeypatch.delenv(var, raising=False)

    yield


# ============================================================================
# Performance Testing Fixtures
# ============================================================================

@pytest.fixture
def memory_profiler():
    """Setup memory profiling for tests."""
    try:
        from memory_profiler import memory_usage

        def profile_memory(func, *args, **kwargs):
            """Profile memory usage of a function."""
            mem_usage = memory_usage((func, args, kwargs))
            return {
                "min": min(mem_usage),
                "max": max(mem_usage),
                "avg": sum(mem_usage) / len(mem_usage)
            }

        return profile_memory
    except ImportError:
        pytest.skip("memory_profiler not installed")


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")
    config.addinivalue_line("markers", "benchmark: marks benchmark tests")
