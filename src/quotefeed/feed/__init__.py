"""Feed Module - Scheduling and delivery of simulated quote updates."""

from quotefeed.feed.listener import CallbackListener, FeedListener, JsonLinesListener
from quotefeed.feed.scheduler import InstrumentSlot, Scheduler
from quotefeed.feed.simulator import FeedSimulator

__all__ = [
    "CallbackListener",
    "FeedListener",
    "FeedSimulator",
    "InstrumentSlot",
    "JsonLinesListener",
    "Scheduler",
]
