"""
Parca query client.

Runs merge queries over gRPC and decodes the Arrow table report into a
QueryResult. The channel is created once at startup and shared by every
collection loop.
"""

import logging
import math
from typing import Optional

import grpc
import pyarrow as pa

from ..models.config import ParcaConfig
from ..models.samples import QueryResult
from ..validation import FetchError
from .proto import (
    MODE_MERGE,
    QUERY_METHOD,
    REPORT_TYPE_TABLE_ARROW,
    QueryRequest,
    QueryResponse,
)

logger = logging.getLogger(__name__)


def create_channel(config: ParcaConfig) -> grpc.aio.Channel:
    """
    Open the gRPC channel to Parca.

    Note:
        grpc does not offer a way to skip server certificate verification;
        insecure_skip_verify is logged and otherwise ignored.
    """
    if config.insecure:
        logger.info(f"Connecting to Parca at {config.address} without TLS")
        return grpc.aio.insecure_channel(config.address)

    if config.insecure_skip_verify:
        logger.warning(
            "parca.insecure_skip_verify is not supported by the gRPC client, "
            "server certificates will be verified"
        )
    logger.info(f"Connecting to Parca at {config.address} with TLS")
    return grpc.aio.secure_channel(config.address, grpc.ssl_channel_credentials())


def _set_timestamp(timestamp, seconds: float) -> None:
    fraction, whole = math.modf(seconds)
    timestamp.seconds = int(whole)
    timestamp.nanos = int(fraction * 1e9)


def build_merge_request(query: str, start: float, end: float):
    """
    Build a merge query returning an Arrow table report.

    Args:
        query: Parca query expression
        start: Window start, seconds since the epoch
        end: Window end, seconds since the epoch
    """
    request = QueryRequest(mode=MODE_MERGE, report_type=REPORT_TYPE_TABLE_ARROW)
    request.merge.query = query
    _set_timestamp(request.merge.start, start)
    _set_timestamp(request.merge.end, end)
    return request


def decode_query_response(response) -> QueryResult:
    """
    Decode the Arrow table report of a query response.

    Only the first record batch of the IPC stream is used.

    Raises:
        FetchError: If the response has no table or the table has no records
    """
    if not response.HasField("table_arrow"):
        raise FetchError("no arrow table returned")

    try:
        reader = pa.ipc.open_stream(response.table_arrow.record)
        record = reader.read_next_batch()
    except StopIteration:
        raise FetchError("no records returned")
    except pa.ArrowException as e:
        raise FetchError(f"create ipc reader: {e}") from e

    return QueryResult(record=record, total=response.total)


class ParcaQueryClient:
    """Query Parca's QueryService for merged profiles."""

    def __init__(self, config: ParcaConfig, channel: Optional[grpc.aio.Channel] = None):
        """
        Initialize the query client.

        Args:
            config: Validated Parca configuration
            channel: Optional pre-built channel (defaults to create_channel(config))
        """
        self.address = config.address
        self._channel = channel if channel is not None else create_channel(config)
        self._metadata = None
        if config.bearer_token:
            self._metadata = (("authorization", f"Bearer {config.bearer_token}"),)
        self._query = self._channel.unary_unary(
            QUERY_METHOD,
            request_serializer=QueryRequest.SerializeToString,
            response_deserializer=QueryResponse.FromString,
        )

    async def query_merge(self, query: str, start: float, end: float) -> QueryResult:
        """
        Fetch the merged profile of `query` over [start, end].

        Raises:
            FetchError: If the RPC fails or the response holds no table
        """
        request = build_merge_request(query, start, end)
        try:
            response = await self._query(request, metadata=self._metadata)
        except grpc.aio.AioRpcError as e:
            raise FetchError(f"query profiling data: {e.code().name}: {e.details()}") from e

        return decode_query_response(response)

    async def close(self) -> None:
        await self._channel.close()
