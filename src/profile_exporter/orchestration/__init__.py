"""
Process orchestration for the exporter.

Components:
- ExporterRunner: builds the clients and runs the collection loops
- SignalHandler: routes SIGINT/SIGTERM to the shutdown event
"""

from .exporter_runner import ExporterRunner
from .signal_handler import HANDLED_SIGNALS, SignalHandler

__all__ = [
    "ExporterRunner",
    "HANDLED_SIGNALS",
    "SignalHandler",
]
