"""
Data models for the exporter.

Configuration Models:
- Remote-write endpoint, authentication and TLS settings
- Parca connection settings
- Exported queries and their function matchers

Cycle Models:
- Query results fetched from Parca
- Matched rows, samples and write batches
"""

from .config import (
    AppConfig,
    AzureADConfig,
    BasicAuthConfig,
    DEFAULT_REMOTE_TIMEOUT,
    FunctionMatcher,
    ParcaConfig,
    QueryConfig,
    RemoteWriteConfig,
    SigV4Config,
    TLSConfig,
)

from .samples import (
    CUMULATIVE_METRIC,
    FLAT_METRIC,
    METRIC_NAME_LABEL,
    ROOT_CUMULATIVE_METRIC,
    MatchedRow,
    QueryResult,
    Sample,
    WriteBatch,
)

__all__ = [
    # Configuration
    "AppConfig",
    "AzureADConfig",
    "BasicAuthConfig",
    "DEFAULT_REMOTE_TIMEOUT",
    "FunctionMatcher",
    "ParcaConfig",
    "QueryConfig",
    "RemoteWriteConfig",
    "SigV4Config",
    "TLSConfig",
    # Cycle
    "CUMULATIVE_METRIC",
    "FLAT_METRIC",
    "METRIC_NAME_LABEL",
    "ROOT_CUMULATIVE_METRIC",
    "MatchedRow",
    "QueryResult",
    "Sample",
    "WriteBatch",
]
