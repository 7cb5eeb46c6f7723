"""
Signal handling for the exporter.

SIGINT and SIGTERM request a shutdown of the running ExporterRunner. Python
signal handlers run on the main thread between bytecodes, so the shutdown
request is forwarded to the event loop with call_soon_threadsafe, which
also wakes a loop blocked in its selector.
"""

import asyncio
import logging
import signal
from typing import Any, Optional

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalHandler:
    """
    Installs SIGINT/SIGTERM handlers that set a shutdown event.

    The previous handlers are restored by cleanup_signal_handlers().
    """

    def __init__(self, shutdown_event: asyncio.Event, loop: asyncio.AbstractEventLoop):
        self.shutdown_event = shutdown_event
        self.loop = loop
        self._original_handlers = {}
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to the shutdown event."""
        try:
            for signum in HANDLED_SIGNALS:
                self._original_handlers[signum] = signal.signal(signum, self._handle_signal)
            self._signal_handlers_set = True
            logger.debug("Signal handlers set up")
        except ValueError as e:
            # signal.signal only works from the main thread
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore the signal handlers that were installed before setup."""
        if not self._signal_handlers_set:
            return

        try:
            for signum, handler in self._original_handlers.items():
                if handler is not None:
                    signal.signal(signum, handler)
            logger.debug("Signal handlers restored")
        except ValueError as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._original_handlers.clear()
            self._signal_handlers_set = False

    def request_shutdown(self, reason: Optional[str] = None) -> None:
        """Set the shutdown event from any thread."""
        if self.shutdown_event.is_set():
            logger.warning("Shutdown already in progress. Please be patient.")
            return
        if reason:
            logger.info(f"{reason}. Initiating graceful shutdown...")
        self.loop.call_soon_threadsafe(self.shutdown_event.set)

    def _handle_signal(self, signum: int, frame: Any) -> None:
        self.request_shutdown(f"Signal {signal.strsignal(signum)} received")
