"""
Data structures flowing through one collection cycle.

A cycle turns a fetched QueryResult into MatchedRows, then into a WriteBatch
of Samples that is encoded and delivered. Nothing here outlives the cycle.
"""

from dataclasses import dataclass, field
from typing import Dict, List

import pyarrow as pa


# Metric names exported for every query.
ROOT_CUMULATIVE_METRIC = "profile_exporter_root_cumulative_value"
FLAT_METRIC = "profile_exporter_flat_value"
CUMULATIVE_METRIC = "profile_exporter_cumulative_value"

# Label carrying the metric name on the wire.
METRIC_NAME_LABEL = "__name__"


@dataclass(frozen=True)
class QueryResult:
    """
    A merged profile as returned by the query service.

    Attributes:
        record: Columnar result table for the evaluation window
        total: Total value of the whole merged profile
    """

    record: pa.RecordBatch
    total: int


@dataclass(frozen=True)
class MatchedRow:
    """A result-table row whose function name contained one matcher."""

    row: int
    function_name: str
    flat: int
    cumulative: int


@dataclass(frozen=True)
class Sample:
    """
    One labelled value at one instant.

    Attributes:
        metric: Metric name, sent as the `__name__` label
        labels: Label names to values, excluding `__name__`
        timestamp_ms: Milliseconds since the Unix epoch
        value: Sample value
    """

    metric: str
    labels: Dict[str, str]
    timestamp_ms: int
    value: float


@dataclass
class WriteBatch:
    """The samples produced by one collection cycle, in build order."""

    samples: List[Sample] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self):
        return iter(self.samples)

    def append(self, sample: Sample) -> None:
        self.samples.append(sample)
