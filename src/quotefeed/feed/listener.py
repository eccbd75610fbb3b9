"""Feed listener interface."""

from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TextIO


class FeedListener(ABC):
    """
    Consumer of quote updates.

    Called synchronously from a shared worker thread, once per firing.
    Implementations must return quickly and handle their own downstream faults.
    """

    @abstractmethod
    def on_update(self, item_id: str, fields: dict[str, str], is_snapshot: bool) -> None:
        """Receive the field set for one item."""
        pass


class CallbackListener(FeedListener):
    """Adapts a plain callable to the listener interface."""

    def __init__(self, callback: Callable[[str, dict[str, str], bool], None]):
        self.callback = callback

    def on_update(self, item_id: str, fields: dict[str, str], is_snapshot: bool) -> None:
        self.callback(item_id, fields, is_snapshot)


class JsonLinesListener(FeedListener):
    """Writes each update as one JSON object per line."""

    def __init__(self, stream: TextIO, flush: bool = True):
        self.stream = stream
        self.flush = flush
        self.count = 0
        # Workers share the stream
        self._lock = threading.Lock()

    def on_update(self, item_id: str, fields: dict[str, str], is_snapshot: bool) -> None:
        line = json.dumps({"item": item_id, "snapshot": is_snapshot, "fields": fields})
        with self._lock:
            self.stream.write(line + "\n")
            if self.flush:
                self.stream.flush()
            self.count += 1
