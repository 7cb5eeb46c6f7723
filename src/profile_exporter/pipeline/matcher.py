"""
Function name matching.

Every (row, matcher) pair whose function name contains the matcher's
substring yields one MatchedRow. Matching is literal and case-sensitive, and
a row hit by several matchers is reported once per matcher.
"""

import logging
from typing import List, Sequence

import polars as pl
import pyarrow as pa

from ..models.config import FunctionMatcher
from ..models.samples import MatchedRow
from .extractor import ExtractedColumns

logger = logging.getLogger(__name__)

_ROW = "row"
_MATCHER = "matcher"


def _to_frame(columns: ExtractedColumns) -> pl.DataFrame:
    table = pa.table({
        "function_name": columns.function_name,
        "flat": columns.flat,
        "cumulative": columns.cumulative,
    })
    frame = pl.from_arrow(table).with_row_index(_ROW)
    return frame.with_columns(pl.col("flat", "cumulative").fill_null(0))


def match_rows(
    columns: ExtractedColumns,
    matchers: Sequence[FunctionMatcher]
) -> List[MatchedRow]:
    """
    Match the function names of a result table against substring matchers.

    Rows without a function name never match.

    Args:
        columns: Type-checked columns of the result table
        matchers: Matchers in configured order

    Returns:
        Matched rows ordered by row, then by matcher position
    """
    if not matchers or columns.num_rows == 0:
        return []

    frame = _to_frame(columns)
    hits = [
        frame.filter(pl.col("function_name").str.contains(matcher.contains, literal=True))
        .with_columns(pl.lit(position, dtype=pl.Int64).alias(_MATCHER))
        for position, matcher in enumerate(matchers)
    ]
    matched = pl.concat(hits).sort([_ROW, _MATCHER])

    logger.debug(
        f"{matched.height} matches for {len(matchers)} matchers over {frame.height} rows"
    )
    return [
        MatchedRow(
            row=row[_ROW],
            function_name=row["function_name"],
            flat=row["flat"],
            cumulative=row["cumulative"],
        )
        for row in matched.iter_rows(named=True)
    ]
