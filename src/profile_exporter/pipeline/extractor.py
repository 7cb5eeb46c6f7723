"""
Column resolution and type checking for Parca table reports.

A table report carries many columns; the exporter only reads `cumulative`,
`flat` and `function_name`. Every one of them must be present exactly once
and hold the expected element type before any row is looked at.
"""

import logging
from dataclasses import dataclass

import pyarrow as pa
import pyarrow.types as patypes

from ..validation import ColumnTypeError, SchemaError

logger = logging.getLogger(__name__)

CUMULATIVE_COLUMN = "cumulative"
FLAT_COLUMN = "flat"
FUNCTION_NAME_COLUMN = "function_name"


@dataclass(frozen=True)
class ColumnIndices:
    """Positional indices of the required columns in one record batch."""

    cumulative: int
    flat: int
    function_name: int


@dataclass(frozen=True)
class ExtractedColumns:
    """
    The required columns of one record batch, type-checked.

    function_name is always a plain string array: dictionary-encoded
    columns are decoded during extraction.
    """

    cumulative: pa.Array
    flat: pa.Array
    function_name: pa.Array

    @property
    def num_rows(self) -> int:
        return len(self.function_name)


def _field_index(schema: pa.Schema, name: str) -> int:
    indices = schema.get_all_field_indices(name)
    if len(indices) != 1:
        raise SchemaError(name, len(indices))
    return indices[0]


def _is_string_type(dtype: pa.DataType) -> bool:
    return patypes.is_string(dtype) or patypes.is_large_string(dtype)


def resolve_columns(schema: pa.Schema) -> ColumnIndices:
    """
    Resolve and type-check the required columns of a schema.

    Args:
        schema: Schema of the result table

    Returns:
        Positional indices of the required columns

    Raises:
        SchemaError: If a required column is missing or duplicated
        ColumnTypeError: If a required column has the wrong element type
    """
    indices = ColumnIndices(
        cumulative=_field_index(schema, CUMULATIVE_COLUMN),
        flat=_field_index(schema, FLAT_COLUMN),
        function_name=_field_index(schema, FUNCTION_NAME_COLUMN),
    )

    for name, index in ((CUMULATIVE_COLUMN, indices.cumulative), (FLAT_COLUMN, indices.flat)):
        dtype = schema.field(index).type
        if not patypes.is_int64(dtype):
            raise ColumnTypeError(name, "int64", dtype)

    dtype = schema.field(indices.function_name).type
    if patypes.is_dictionary(dtype):
        if not _is_string_type(dtype.value_type):
            raise ColumnTypeError(f"{FUNCTION_NAME_COLUMN} dictionary", "string", dtype.value_type)
    elif not _is_string_type(dtype):
        raise ColumnTypeError(FUNCTION_NAME_COLUMN, "string or dictionary", dtype)

    return indices


def extract_columns(record: pa.RecordBatch) -> ExtractedColumns:
    """
    Pull the required columns out of a record batch.

    Raises:
        SchemaError: If a required column is missing or duplicated
        ColumnTypeError: If a required column has the wrong element type
    """
    indices = resolve_columns(record.schema)

    function_name = record.column(indices.function_name)
    if patypes.is_dictionary(function_name.type):
        function_name = function_name.dictionary_decode()

    logger.debug(
        f"Resolved columns cumulative={indices.cumulative} flat={indices.flat} "
        f"function_name={indices.function_name} over {record.num_rows} rows"
    )
    return ExtractedColumns(
        cumulative=record.column(indices.cumulative),
        flat=record.column(indices.flat),
        function_name=function_name,
    )
