"""Per-instrument timer scheduling on a bounded worker pool."""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

from quotefeed.constants import DEFAULT_POOL_SIZE
from quotefeed.data.field_encoder import QuoteRecord, encode
from quotefeed.data.price_walk import PriceWalk
from quotefeed.feed.listener import FeedListener

logger = logging.getLogger(__name__)


class InstrumentSlot:
    """
    Scheduling slot owning one instrument's walk.

    The slot lock is the single-writer section for the walk and its random
    source; nothing else touches either.
    """

    def __init__(self, walk: PriceWalk):
        self.walk = walk
        self.item_id = walk.definition.item_id
        self.fired = 0
        self._lock = threading.Lock()

    def fire(self) -> QuoteRecord:
        """Advance the walk and encode the new state."""
        with self._lock:
            self.walk.advance()
            record = encode(self.walk)
            self.fired += 1
        return record

    def snapshot(self) -> QuoteRecord:
        """Encode the current state without advancing."""
        with self._lock:
            return encode(self.walk)

    def next_interval(self) -> float:
        with self._lock:
            return self.walk.next_interval()


class Scheduler:
    """
    Drives one self-rescheduling timer per instrument.

    A dispatcher thread keeps a heap of due times and hands due slots to a
    fixed-size thread pool. Each firing re-arms its own slot once the update
    has been delivered, so a slot never has more than one armed timer and
    its updates are strictly ordered. Firing times are targets: when every
    worker is busy, due firings queue in the pool.
    """

    def __init__(self, listener: FeedListener, pool_size: int = DEFAULT_POOL_SIZE):
        """
        Initialize the scheduler.

        Args:
            listener: Receives every encoded update.
            pool_size: Number of worker threads running firings.
        """
        if pool_size < 1:
            raise ValueError(f"pool_size must be at least 1, got: {pool_size}")
        self.listener = listener
        self.pool_size = pool_size

        self._timers: list[tuple[float, int, InstrumentSlot]] = []
        self._seq = itertools.count()
        self._cond = threading.Condition()
        self._executor: ThreadPoolExecutor | None = None
        self._dispatcher: threading.Thread | None = None
        self._running = False
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the dispatcher and the worker pool."""
        with self._cond:
            if self._stopped:
                raise RuntimeError("Scheduler cannot be restarted after stop()")
            if self._running:
                return
            self._executor = ThreadPoolExecutor(
                max_workers=self.pool_size, thread_name_prefix="feed-worker"
            )
            self._running = True
            self._dispatcher = threading.Thread(
                target=self._dispatch_loop, name="feed-dispatcher", daemon=True
            )
            self._dispatcher.start()
        logger.info(f"Scheduler started with {self.pool_size} workers")

    def schedule(self, slot: InstrumentSlot, delay_ms: float) -> None:
        """
        Arm a timer firing ``slot`` after ``delay_ms`` milliseconds.

        Ignored once the scheduler has been stopped.
        """
        with self._cond:
            if self._stopped:
                return
            if not self._running:
                raise RuntimeError("Scheduler not started")
            due = time.monotonic() + delay_ms / 1000.0
            heapq.heappush(self._timers, (due, next(self._seq), slot))
            self._cond.notify()

    def pending(self) -> int:
        """Number of armed timers."""
        with self._cond:
            return len(self._timers)

    def stop(self, wait: bool = True) -> None:
        """
        Stop arming timers and drop the pending ones.

        In-flight firings complete; firings queued in the pool but not yet
        started are cancelled. With ``wait`` this blocks until in-flight ones
        have finished.
        Must not be called from a listener, which runs on the worker pool.
        """
        with self._cond:
            if self._stopped:
                return
            self._stopped = True
            was_running = self._running
            self._running = False
            dropped = len(self._timers)
            self._timers.clear()
            self._cond.notify_all()

        if not was_running:
            return

        if self._dispatcher is not None:
            self._dispatcher.join()
        if self._executor is not None:
            # Firings queued behind busy workers never start
            self._executor.shutdown(wait=wait, cancel_futures=True)
        logger.info(f"Scheduler stopped, {dropped} pending timers dropped")

    def _dispatch_loop(self) -> None:
        with self._cond:
            while self._running:
                if not self._timers:
                    self._cond.wait()
                    continue

                due = self._timers[0][0]
                delay = due - time.monotonic()
                if delay > 0:
                    self._cond.wait(timeout=delay)
                    continue

                _, _, slot = heapq.heappop(self._timers)
                self._executor.submit(self._fire, slot)

    def _fire(self, slot: InstrumentSlot) -> None:
        try:
            record = slot.fire()
        except Exception:
            # Walk state is suspect, retire the instrument
            logger.exception(f"Price update failed for {slot.item_id}, instrument retired")
            return

        logger.debug(f"{slot.item_id} update #{slot.fired}: {record.last_price}")
        try:
            self.listener.on_update(slot.item_id, record.to_fields(), False)
        except Exception:
            # Keep the instrument alive; the listener owns its own faults
            logger.exception(f"Update delivery failed for {slot.item_id}")

        if self._running:
            self.schedule(slot, slot.next_interval())
