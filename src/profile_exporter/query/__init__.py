"""
Access to the Parca query service.
"""

from .client import (
    ParcaQueryClient,
    build_merge_request,
    create_channel,
    decode_query_response,
)
from .proto import MergeProfile, QueryRequest, QueryResponse, TableArrow

__all__ = [
    "ParcaQueryClient",
    "build_merge_request",
    "create_channel",
    "decode_query_response",
    "MergeProfile",
    "QueryRequest",
    "QueryResponse",
    "TableArrow",
]
