"""
Sample construction for one collection cycle.
"""

import time
from typing import Iterable, Optional

from ..models.config import QueryConfig
from ..models.samples import (
    CUMULATIVE_METRIC,
    FLAT_METRIC,
    ROOT_CUMULATIVE_METRIC,
    MatchedRow,
    Sample,
    WriteBatch,
)


def build_write_batch(
    query: QueryConfig,
    total: int,
    matched_rows: Iterable[MatchedRow],
    collected_at: Optional[float] = None
) -> WriteBatch:
    """
    Build the samples exported for one query result.

    The batch holds the root cumulative total followed by a flat and a
    cumulative sample per matched row, all stamped with the same instant.
    Matched rows sharing a function name are not merged.

    Args:
        query: Query the result belongs to
        total: Total value of the merged profile
        matched_rows: Rows selected by the query's matchers
        collected_at: Collection time in seconds since the epoch (defaults to now)

    Returns:
        WriteBatch with 1 + 2 * len(matched_rows) samples
    """
    if collected_at is None:
        collected_at = time.time()
    timestamp_ms = int(collected_at * 1000)

    base_labels = {"query": query.query, "query_name": query.name}
    batch = WriteBatch()
    batch.append(Sample(
        metric=ROOT_CUMULATIVE_METRIC,
        labels=dict(base_labels),
        timestamp_ms=timestamp_ms,
        value=float(total),
    ))

    for row in matched_rows:
        labels = {**base_labels, "function_name": row.function_name}
        batch.append(Sample(
            metric=FLAT_METRIC,
            labels=labels,
            timestamp_ms=timestamp_ms,
            value=float(row.flat),
        ))
        batch.append(Sample(
            metric=CUMULATIVE_METRIC,
            labels=dict(labels),
            timestamp_ms=timestamp_ms,
            value=float(row.cumulative),
        ))

    return batch
