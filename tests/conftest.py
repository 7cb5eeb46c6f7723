"""
Pytest configuration and shared fixtures for the profile exporter test suite.

This module provides common fixtures for building Parca table reports,
configuration data and mocked clients used across the unit and end-to-end
tests.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pyarrow as pa
import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config_data() -> Dict[str, Any]:
    """Sample configuration data, as parsed from a TOML file."""
    return {
        "remote_write": {
            "url": "http://prometheus.example:9090/api/v1/write",
            "remote_timeout": "10s",
        },
        "parca": {
            "address": "parca.example:7070",
            "insecure": True,
        },
        "queries": [
            {
                "name": "cpu",
                "query": "parca_agent:samples:count:cpu:nanoseconds:delta{}",
                "duration": "1m",
                "matchers": [{"contains": "main.work"}],
            },
        ],
    }


@pytest.fixture
def query_config():
    """A query with a single `main.work` matcher."""
    from profile_exporter.models.config import FunctionMatcher, QueryConfig

    return QueryConfig(
        name="cpu",
        query="parca_agent:samples:count:cpu:nanoseconds:delta{}",
        duration=60.0,
        matchers=(FunctionMatcher(contains="main.work"),),
    )


# ============================================================================
# Arrow Fixtures
# ============================================================================


class RecordBuilder:
    """Build Parca-like table report record batches."""

    @staticmethod
    def build(
        function_names: List[Optional[str]],
        flat: Optional[List[Optional[int]]] = None,
        cumulative: Optional[List[Optional[int]]] = None,
        dictionary: bool = True,
    ) -> pa.RecordBatch:
        """
        Build a record batch with the columns of a table report.

        The function_name column is dictionary-encoded unless `dictionary`
        is False. An unrelated `line_number` column comes first so that the
        required columns are not at fixed positions.
        """
        count = len(function_names)
        flat = flat if flat is not None else [0] * count
        cumulative = cumulative if cumulative is not None else [0] * count

        names = pa.array(function_names, type=pa.string())
        if dictionary:
            names = names.dictionary_encode()

        return pa.RecordBatch.from_arrays(
            [
                pa.array(range(count), type=pa.int32()),
                names,
                pa.array(flat, type=pa.int64()),
                pa.array(cumulative, type=pa.int64()),
            ],
            names=["line_number", "function_name", "flat", "cumulative"],
        )

    @staticmethod
    def to_ipc_stream(record: pa.RecordBatch) -> bytes:
        """Serialize a record batch as an Arrow IPC stream."""
        sink = pa.BufferOutputStream()
        with pa.ipc.new_stream(sink, record.schema) as writer:
            writer.write_batch(record)
        return sink.getvalue().to_pybytes()


@pytest.fixture
def record_builder():
    """Provide the record batch builder."""
    return RecordBuilder


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    yield  # Run the test

    from profile_exporter.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(Path("profile-exporter.toml"))
