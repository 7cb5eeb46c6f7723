"""
Periodic collection loops.

The CollectionScheduler runs one asyncio task per configured query. On every
tick a task fetches the merged profile for the last evaluation window,
translates it into samples and pushes them to remote write. A failed cycle
is logged and the task waits for its next tick; only cancellation stops it.
"""

import asyncio
import logging
import time
from typing import List, Optional, Protocol, Sequence

from ..models.config import QueryConfig
from ..models.samples import QueryResult, WriteBatch
from ..pipeline import build_write_batch, extract_columns, match_rows
from ..validation import ExporterError

logger = logging.getLogger(__name__)


class QueryClient(Protocol):
    async def query_merge(self, query: str, start: float, end: float) -> QueryResult:
        ...


class BatchSender(Protocol):
    async def send(self, batch: WriteBatch) -> None:
        ...


def next_tick_after(previous_tick: float, period: float, now: float) -> float:
    """
    Compute the next tick of a periodic loop.

    Ticks missed while a cycle was running collapse into a single tick that
    fires immediately.
    """
    following = previous_tick + period
    if following > now:
        return following
    return now


class CollectionScheduler:
    """
    Run one independent collection loop per query.

    Loops share the query client and the remote-write client and nothing
    else. Cycles of the same query never overlap.
    """

    def __init__(
        self,
        queries: Sequence[QueryConfig],
        query_client: QueryClient,
        remote_write_client: BatchSender,
    ):
        self.queries = list(queries)
        self.query_client = query_client
        self.remote_write_client = remote_write_client
        self.collection_tasks: List[asyncio.Task] = []

    async def run_collection(self, query: QueryConfig, now: Optional[float] = None) -> WriteBatch:
        """
        Run one collection cycle for a query.

        Args:
            query: Query to collect
            now: End of the evaluation window in seconds since the epoch
                (defaults to the current time)

        Returns:
            The write batch that was delivered

        Raises:
            FetchError, SchemaError, ColumnTypeError, EncodeError, DeliveryError
        """
        if now is None:
            now = time.time()

        result = await self.query_client.query_merge(query.query, now - query.duration, now)
        columns = extract_columns(result.record)
        matched_rows = match_rows(columns, query.matchers)
        batch = build_write_batch(query, result.total, matched_rows, collected_at=now)

        await self.remote_write_client.send(batch)
        return batch

    async def _run_collection_loop(self, query: QueryConfig) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + query.duration
        logger.info(f"Starting collection loop for query '{query.name}' every {query.duration}s")

        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            try:
                batch = await self.run_collection(query)
                logger.debug(f"Collected {len(batch)} series for query '{query.name}'")
            except ExporterError as e:
                logger.error(f"Error during collection for query '{query.name}': {e}")
            except Exception as e:
                logger.error(
                    f"Unexpected error during collection for query '{query.name}': "
                    f"{type(e).__name__}: {e}",
                    exc_info=True,
                )
            next_tick = next_tick_after(next_tick, query.duration, loop.time())

    def start(self) -> None:
        """Start one collection task per query."""
        if self.collection_tasks:
            logger.warning("Collection loops are already running")
            return

        for query in self.queries:
            task = asyncio.create_task(
                self._run_collection_loop(query),
                name=f"collect-{query.name}"
            )
            self.collection_tasks.append(task)
        logger.info(f"Started {len(self.collection_tasks)} collection loops")

    async def stop(self) -> None:
        """Cancel every collection task, aborting in-flight requests."""
        for task in self.collection_tasks:
            task.cancel()
        if self.collection_tasks:
            await asyncio.gather(*self.collection_tasks, return_exceptions=True)
        self.collection_tasks.clear()
        logger.info("Collection loops stopped")

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Run the collection loops until shutdown_event is set."""
        self.start()
        try:
            await shutdown_event.wait()
        finally:
            await self.stop()
