"""
Top-level lifecycle of the exporter process.

The ExporterRunner builds the shared clients from the validated
configuration, runs the collection loops until a shutdown is requested and
closes the clients again.
"""

import asyncio
import logging
from typing import Optional

from ..collection import CollectionScheduler
from ..models.config import AppConfig
from ..query import ParcaQueryClient
from ..remote_write import RemoteWriteClient
from .signal_handler import SignalHandler

logger = logging.getLogger(__name__)


class ExporterRunner:
    """
    Coordinates startup, the collection loops and shutdown.

    Client construction happens before any loop starts, so credential or
    connection setup failures surface as startup errors.
    """

    def __init__(
        self,
        config: AppConfig,
        query_client: Optional[ParcaQueryClient] = None,
        remote_write_client: Optional[RemoteWriteClient] = None,
    ):
        self.config = config
        self._query_client = query_client
        self._remote_write_client = remote_write_client
        self.shutdown_event: Optional[asyncio.Event] = None
        self.signal_handler: Optional[SignalHandler] = None

    def request_shutdown(self) -> None:
        """Ask the running exporter to stop its loops."""
        if self.signal_handler is not None:
            self.signal_handler.request_shutdown("Shutdown requested")

    async def run(self, install_signal_handlers: bool = True) -> None:
        """
        Run the exporter until a shutdown is requested.

        Raises:
            ValidationError: If an authentication scheme cannot be set up
        """
        loop = asyncio.get_running_loop()
        self.shutdown_event = asyncio.Event()
        self.signal_handler = SignalHandler(self.shutdown_event, loop)

        query_client = None
        remote_write_client = None
        signal_handlers_installed = False
        try:
            query_client = self._query_client or ParcaQueryClient(self.config.parca)
            remote_write_client = self._remote_write_client or RemoteWriteClient(self.config.remote_write)
            scheduler = CollectionScheduler(self.config.queries, query_client, remote_write_client)

            if install_signal_handlers:
                self.signal_handler.setup_signal_handlers()
                signal_handlers_installed = True
            await scheduler.run(self.shutdown_event)
        finally:
            if signal_handlers_installed:
                self.signal_handler.cleanup_signal_handlers()
            if remote_write_client is not None:
                await remote_write_client.aclose()
            if query_client is not None:
                await query_client.close()
            logger.info("Exporter stopped")
