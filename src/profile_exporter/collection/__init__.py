"""
Collection scheduling: one periodic loop per configured query.
"""

from .scheduler import BatchSender, CollectionScheduler, QueryClient, next_tick_after

__all__ = [
    "BatchSender",
    "CollectionScheduler",
    "QueryClient",
    "next_tick_after",
]
