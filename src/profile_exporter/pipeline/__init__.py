"""
Translation of Parca table reports into Prometheus samples.

- extractor: resolve and type-check the required columns
- matcher: select rows whose function name contains a configured substring
- series: build the write batch for one collection cycle
"""

from .extractor import (
    CUMULATIVE_COLUMN,
    FLAT_COLUMN,
    FUNCTION_NAME_COLUMN,
    ColumnIndices,
    ExtractedColumns,
    extract_columns,
    resolve_columns,
)
from .matcher import match_rows
from .series import build_write_batch

__all__ = [
    "CUMULATIVE_COLUMN",
    "FLAT_COLUMN",
    "FUNCTION_NAME_COLUMN",
    "ColumnIndices",
    "ExtractedColumns",
    "extract_columns",
    "resolve_columns",
    "match_rows",
    "build_write_batch",
]
