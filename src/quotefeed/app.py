"""quotefeed Main Application."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import TextIO

from quotefeed.config_loader import AppConfig, load_config_with_overrides
from quotefeed.constants import LOG_FORMAT
from quotefeed.data.catalog import InstrumentCatalog
from quotefeed.feed.listener import FeedListener, JsonLinesListener
from quotefeed.feed.simulator import FeedSimulator

logger = logging.getLogger(__name__)


def build_catalog(config: AppConfig) -> InstrumentCatalog:
    """Catalog from config, or the built-in table when none is configured."""
    if config.uses_default_catalog:
        return InstrumentCatalog.default()
    return InstrumentCatalog.from_config(config.instruments)


class FeedApp:
    """Main application orchestrator."""

    def __init__(
        self,
        config_path: str | Path | None = None,
        seed: int | None = None,
        pool_size: int | None = None,
        output: str | Path | None = None,
        listener: FeedListener | None = None,
    ):
        self.config_path = Path(config_path) if config_path is not None else None
        self.config: AppConfig | None = None
        self._seed_override = seed
        self._pool_size_override = pool_size
        self._output_path = Path(output) if output is not None else None

        # Components
        self.catalog: InstrumentCatalog | None = None
        self.listener: FeedListener | None = listener
        self.feed: FeedSimulator | None = None
        self._output: TextIO | None = None

        self._shutdown_event = asyncio.Event()

    def _setup_logging(self) -> None:
        # Logs go to stderr so stdout stays a clean JSON-lines stream
        logging.basicConfig(
            level=self.config.environment.log_level.value, format=LOG_FORMAT, stream=sys.stderr
        )

    def initialize(self) -> None:
        """Load config and wire components."""
        self.config = load_config_with_overrides(
            self.config_path,
            seed=self._seed_override,
            pool_size=self._pool_size_override,
        )
        self._setup_logging()
        logger.info("Initializing quotefeed...")

        self.catalog = build_catalog(self.config)
        logger.info(f"Catalog loaded: {self.catalog.count()} instruments")

        if self.listener is None:
            if self._output_path is not None:
                self._output_path.parent.mkdir(parents=True, exist_ok=True)
                self._output = open(self._output_path, "w", encoding="utf-8")
                stream = self._output
            else:
                stream = sys.stdout
            self.listener = JsonLinesListener(stream)

        self.feed = FeedSimulator(
            self.listener,
            self.catalog,
            seed=self.config.feed.seed,
            pool_size=self.config.feed.pool_size,
            snapshot_on_start=self.config.feed.snapshot_on_start,
        )

    async def run(self, duration: float | None = None) -> None:
        """
        Run the feed until a signal arrives or ``duration`` seconds elapse.

        Args:
            duration: Seconds to run for; unbounded when None.
        """
        if self.config is None:
            self.initialize()

        loop = asyncio.get_running_loop()
        try:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self._handle_signal)
        except (NotImplementedError, RuntimeError):
            logger.warning("Signal handlers not supported in this environment. Use Ctrl+C to stop.")

        self.feed.start()

        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=duration)
        except asyncio.TimeoutError:
            logger.info(f"Run duration of {duration}s reached")
        except asyncio.CancelledError:
            pass
        finally:
            logger.info("Shutting down...")
            # Joining the pool blocks, keep it off the event loop
            await loop.run_in_executor(None, self.feed.stop)
            if self._output is not None:
                self._output.close()
            logger.info("Shutdown complete.")

    def _handle_signal(self) -> None:
        logger.info("Signal received, initiating shutdown...")
        self._shutdown_event.set()
