"""Simulated quote feed."""

from __future__ import annotations

import logging
import random

from quotefeed.constants import DEFAULT_POOL_SIZE
from quotefeed.data.catalog import InstrumentCatalog
from quotefeed.data.price_walk import PriceWalk
from quotefeed.feed.listener import FeedListener
from quotefeed.feed.scheduler import InstrumentSlot, Scheduler

logger = logging.getLogger(__name__)


def make_random_sources(count: int, seed: int | None = None) -> list[random.Random]:
    """
    Create one independent random stream per instrument.

    With a seed, streams derive from a master generator in catalog order so each
    instrument's draws are reproducible regardless of firing interleaving.
    """
    if seed is None:
        return [random.Random() for _ in range(count)]
    master = random.Random(seed)
    return [random.Random(master.getrandbits(64)) for _ in range(count)]


class FeedSimulator:
    """
    Simulates attaching to an external broadcast feed.

    Usage:
        feed = FeedSimulator(listener, seed=42)
        feed.start()
        ...
        feed.stop()
    """

    def __init__(
        self,
        listener: FeedListener,
        catalog: InstrumentCatalog | None = None,
        *,
        seed: int | None = None,
        pool_size: int = DEFAULT_POOL_SIZE,
        snapshot_on_start: bool = False,
    ):
        self.listener = listener
        self.catalog = catalog or InstrumentCatalog.default()
        self.seed = seed
        self.snapshot_on_start = snapshot_on_start
        self.scheduler = Scheduler(listener, pool_size=pool_size)
        self._slots: list[InstrumentSlot] = []

    @property
    def slots(self) -> list[InstrumentSlot]:
        return list(self._slots)

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self) -> None:
        """
        Build a walk per instrument and arm each first timer.

        Not idempotent: a second call builds a second set of walks and
        duplicates every timer.
        """
        self.scheduler.start()

        rngs = make_random_sources(self.catalog.count(), self.seed)
        for index in range(self.catalog.count()):
            slot = InstrumentSlot(PriceWalk(self.catalog.get(index), rngs[index]))
            self._slots.append(slot)
            if self.snapshot_on_start:
                self._publish_snapshot(slot)
            self.scheduler.schedule(slot, slot.next_interval())

        logger.info(f"Feed started: {self.catalog.count()} instruments, seed={self.seed}")

    def stop(self, wait: bool = True) -> None:
        """Stop arming timers. In-flight updates are allowed to finish."""
        self.scheduler.stop(wait=wait)
        total = sum(slot.fired for slot in self._slots)
        logger.info(f"Feed stopped after {total} updates")

    def snapshot(self, item_id: str) -> dict[str, str]:
        """
        Publish the current field set of one item without advancing it.

        Raises:
            KeyError: If the item is not being simulated.
        """
        for slot in self._slots:
            if slot.item_id == item_id:
                return self._publish_snapshot(slot)
        raise KeyError(item_id)

    def _publish_snapshot(self, slot: InstrumentSlot) -> dict[str, str]:
        fields = slot.snapshot().to_fields()
        self.listener.on_update(slot.item_id, fields, True)
        return fields

    def __enter__(self) -> FeedSimulator:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
