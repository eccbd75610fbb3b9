"""Quote record encoding."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from quotefeed.constants import (
    PRICE_QUANTUM,
    QUANTITY_LOT,
    QUANTITY_MAX_LOTS,
    QUANTITY_MIN_LOTS,
    QUOTE_FIELDS,
    TIME_FORMAT,
    FeedStatus,
)
from quotefeed.data.price_walk import PriceWalk


@dataclass(frozen=True)
class QuoteRecord:
    """Externally visible field set for one update. Every value is a string."""

    time: str
    last_price: str
    bid: str
    ask: str
    bid_quantity: str
    ask_quantity: str
    pct_change: str
    min: str
    max: str
    stock_name: str
    ref_price: str
    open_price: str
    item_status: str

    def to_fields(self) -> dict[str, str]:
        """Return the record as an ordered field -> value mapping."""
        return {name: getattr(self, name) for name in QUOTE_FIELDS}


def format_hundredths(value: int) -> str:
    """Render an integer count of hundredths as a two-decimal string."""
    return str(Decimal(value).scaleb(-2))


def percent_change(last: int, ref: int) -> Decimal:
    """Percent deviation of ``last`` from ``ref``, rounded half-up to 2 places."""
    if ref == 0:
        return Decimal("0.00")
    pct = Decimal(last - ref) * 100 / Decimal(ref)
    pct = pct.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)
    # No "-0.00"
    return abs(pct) if pct.is_zero() else pct


def encode(walk: PriceWalk, now: datetime | None = None) -> QuoteRecord:
    """
    Snapshot a walk into a quote record.

    Draws the two book quantities from the walk's random source, so callers
    must hold the same per-instrument lock used for ``advance``.

    Args:
        walk: Instrument walk to read.
        now: Wall-clock time of the update; local time when omitted.

    Returns:
        Encoded QuoteRecord.
    """
    if now is None:
        now = datetime.now()

    definition = walk.definition
    bid = min(walk.last, walk.other)
    ask = max(walk.last, walk.other)

    bid_quantity = walk.rng.randint(QUANTITY_MIN_LOTS, QUANTITY_MAX_LOTS) * QUANTITY_LOT
    ask_quantity = walk.rng.randint(QUANTITY_MIN_LOTS, QUANTITY_MAX_LOTS) * QUANTITY_LOT

    return QuoteRecord(
        time=now.strftime(TIME_FORMAT),
        last_price=format_hundredths(walk.last),
        bid=format_hundredths(bid),
        ask=format_hundredths(ask),
        bid_quantity=str(bid_quantity),
        ask_quantity=str(ask_quantity),
        pct_change=str(percent_change(walk.last, definition.ref_price)),
        min=format_hundredths(walk.min),
        max=format_hundredths(walk.max),
        stock_name=definition.stock_name,
        ref_price=format_hundredths(definition.ref_price),
        open_price=format_hundredths(definition.open_price),
        item_status=FeedStatus.ACTIVE.value,
    )
