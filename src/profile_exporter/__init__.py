"""
profile_exporter: Parca profiles as Prometheus metrics.

This package periodically runs merge queries against a Parca profiling
backend, derives per-function flat and cumulative values from the returned
Arrow table and pushes them to a Prometheus remote-write endpoint.

The package is organized into specialized modules:
- config: Configuration loading and validation
- models: Configuration and sample data structures
- validation: Input validation and the error taxonomy
- pipeline: Column extraction, function matching and sample building
- query: Parca query client
- remote_write: Protobuf encoding, snappy compression, auth and delivery
- collection: Periodic per-query collection loops
- orchestration: Process lifecycle and signal handling
- cli: Command-line interface

Usage:
    From command line:
        profile-exporter --config-file profile-exporter.toml

    Programmatically:
        from profile_exporter import ExporterRunner, get_config
        asyncio.run(ExporterRunner(get_config()).run())
"""

__version__ = "0.1.0"

from .config import get_config, clear_config_cache, set_config_path

from .models import (
    AppConfig,
    FunctionMatcher,
    MatchedRow,
    ParcaConfig,
    QueryConfig,
    QueryResult,
    RemoteWriteConfig,
    Sample,
    WriteBatch,
)

from .validation import (
    ColumnTypeError,
    DeliveryError,
    EncodeError,
    ExporterError,
    FetchError,
    SchemaError,
    ValidationError,
)

from .pipeline import build_write_batch, extract_columns, match_rows
from .remote_write import RemoteWriteClient, WriteEncoder
from .query import ParcaQueryClient
from .collection import CollectionScheduler
from .orchestration import ExporterRunner
from .cli import main_cli

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "ExporterRunner",
    "main_cli",
    # Models
    "AppConfig",
    "FunctionMatcher",
    "MatchedRow",
    "ParcaConfig",
    "QueryConfig",
    "QueryResult",
    "RemoteWriteConfig",
    "Sample",
    "WriteBatch",
    # Errors
    "ColumnTypeError",
    "DeliveryError",
    "EncodeError",
    "ExporterError",
    "FetchError",
    "SchemaError",
    "ValidationError",
    # Pipeline
    "build_write_batch",
    "extract_columns",
    "match_rows",
    "RemoteWriteClient",
    "WriteEncoder",
    "ParcaQueryClient",
    "CollectionScheduler",
]
