"""Instrument reference data.

The catalog is built once at startup and shared read-only by every price walk,
so it needs no locking. Prices are converted to integer hundredths here and
never leave that representation until a quote record is encoded.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal

from quotefeed.config_loader import InstrumentConfig
from quotefeed.constants import DEFAULT_ITEM_PREFIX, PRICE_SCALE


class CatalogError(ValueError):
    """Raised when instrument reference data cannot drive a walk."""


@dataclass(frozen=True)
class InstrumentDefinition:
    """Static per-instrument constants. Prices in hundredths of a unit."""

    item_id: str
    stock_name: str
    ref_price: int
    open_price: int
    min_price: int
    max_price: int
    mean_interval_ms: float
    stddev_interval_ms: float


def to_hundredths(value: Decimal, rounding: str = ROUND_HALF_UP) -> int:
    """Convert a decimal price to integer hundredths using the given rounding mode."""
    return int((value * PRICE_SCALE).to_integral_value(rounding=rounding))


def definition_from_config(item_id: str, config: InstrumentConfig) -> InstrumentDefinition:
    """
    Build a definition from validated config.

    The band is converted inwards (min rounds up, max rounds down) so it never
    widens past the configured prices.
    """
    return InstrumentDefinition(
        item_id=item_id,
        stock_name=config.stock_name,
        ref_price=to_hundredths(config.ref_price),
        open_price=to_hundredths(config.open_price),
        min_price=to_hundredths(config.min_price, ROUND_CEILING),
        max_price=to_hundredths(config.max_price, ROUND_FLOOR),
        mean_interval_ms=config.mean_interval_ms,
        stddev_interval_ms=config.stddev_interval_ms,
    )


def validate_definition(definition: InstrumentDefinition) -> None:
    """
    Check a definition can be simulated.

    Raises:
        CatalogError: If intervals are non-positive or non-finite, a price is negative or the
            initial band is inverted.
    """
    intervals = (definition.mean_interval_ms, definition.stddev_interval_ms)
    if any(not math.isfinite(v) or v <= 0 for v in intervals):
        raise CatalogError(
            f"{definition.item_id}: interval mean and stddev must be finite and positive, got "
            f"{definition.mean_interval_ms}/{definition.stddev_interval_ms}"
        )
    prices = (
        definition.ref_price,
        definition.open_price,
        definition.min_price,
        definition.max_price,
    )
    if any(p < 0 for p in prices):
        raise CatalogError(f"{definition.item_id}: prices must be non-negative, got {prices}")
    if definition.min_price > definition.max_price:
        raise CatalogError(
            f"{definition.item_id}: min_price {definition.min_price} "
            f"exceeds max_price {definition.max_price}"
        )


class InstrumentCatalog:
    """Immutable, index-addressable table of instrument definitions."""

    def __init__(self, definitions: Iterable[InstrumentDefinition]) -> None:
        self._definitions = tuple(definitions)
        if not self._definitions:
            raise CatalogError("Catalog must contain at least one instrument")

        seen: set[str] = set()
        for definition in self._definitions:
            validate_definition(definition)
            if definition.item_id in seen:
                raise CatalogError(f"Duplicate item id: {definition.item_id}")
            seen.add(definition.item_id)

        self._by_id = {d.item_id: d for d in self._definitions}

    @classmethod
    def from_config(
        cls, instruments: Iterable[InstrumentConfig], prefix: str = DEFAULT_ITEM_PREFIX
    ) -> InstrumentCatalog:
        """Build a catalog, numbering items from 1 in configuration order."""
        return cls(
            definition_from_config(f"{prefix}{i}", cfg)
            for i, cfg in enumerate(instruments, start=1)
        )

    @classmethod
    def default(cls) -> InstrumentCatalog:
        """Build the built-in 30 instrument table."""
        return cls.from_config(DEFAULT_INSTRUMENTS)

    def get(self, index: int) -> InstrumentDefinition:
        return self._definitions[index]

    def count(self) -> int:
        return len(self._definitions)

    def by_item_id(self, item_id: str) -> InstrumentDefinition:
        """Look up a definition by item id. Raises KeyError if unknown."""
        return self._by_id[item_id]

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[InstrumentDefinition]:
        return iter(self._definitions)


def _instrument(
    name: str, ref: str, open_: str, low: str, high: str, mean: float, stddev: float
) -> InstrumentConfig:
    return InstrumentConfig(
        stock_name=name,
        ref_price=Decimal(ref),
        open_price=Decimal(open_),
        min_price=Decimal(low),
        max_price=Decimal(high),
        mean_interval_ms=mean,
        stddev_interval_ms=stddev,
    )


# name, reference, open, min, max, interval mean (ms), interval stddev (ms)
DEFAULT_INSTRUMENTS: tuple[InstrumentConfig, ...] = (
    _instrument("Anduct", "3.04", "3.10", "3.09", "3.19", 30000, 6000),
    _instrument("Ations Europe", "16.09", "16.20", "15.78", "16.20", 500, 300),
    _instrument("Bagies Consulting", "7.19", "7.25", "7.15", "7.26", 3000, 1000),
    _instrument("BAY Corporation", "3.63", "3.62", "3.62", "3.71", 90000, 1000),
    _instrument("CON Consulting", "7.61", "7.65", "7.53", "7.65", 7000, 100),
    _instrument("Corcor PLC", "2.30", "2.30", "2.28", "2.30", 10000, 5000),
    _instrument("CVS Asia", "15.39", "15.85", "15.60", "15.89", 3000, 1000),
    _instrument("Datio PLC", "5.31", "5.31", "5.23", "5.31", 7000, 3000),
    _instrument("Dentems", "4.86", "4.97", "4.89", "4.97", 7000, 1000),
    _instrument("ELE Manufacturing", "7.61", "7.70", "7.70", "7.86", 7000, 6000),
    _instrument("Exacktum Systems", "10.41", "10.50", "10.36", "10.50", 500, 300),
    _instrument("KLA Systems Inc", "3.94", "3.95", "3.90", "3.95", 3000, 1000),
    _instrument("Lted Europe", "6.79", "6.84", "6.81", "6.87", 20000, 1000),
    _instrument("Magasconall Capital", "26.87", "27.05", "26.74", "27.05", 20000, 4000),
    _instrument("MED", "2.27", "2.29", "2.29", "2.31", 20000, 1000),
    _instrument("Mice Investments", "13.04", "13.20", "13.09", "13.19", 30000, 6000),
    _instrument("Micropline PLC", "6.09", "6.20", "5.78", "6.20", 500, 300),
    _instrument("Nologicroup Devices", "17.19", "17.25", "17.15", "17.26", 3000, 1000),
    _instrument("Phing Technology", "13.63", "13.62", "13.62", "13.71", 90000, 1000),
    _instrument("Pres Partners", "17.61", "17.65", "17.53", "17.65", 7000, 100),
    _instrument("Quips Devices", "11.30", "11.30", "11.28", "11.30", 10000, 5000),
    _instrument("Ress Devices", "5.39", "5.55", "5.60", "5.89", 3000, 1000),
    _instrument("Sacle Research", "15.31", "15.31", "15.23", "15.31", 7000, 3000),
    _instrument("Seaging Devices", "14.86", "14.97", "14.89", "14.97", 7000, 1000),
    _instrument("Sems Systems, Inc", "17.61", "17.70", "17.70", "17.86", 7000, 6000),
    _instrument("Softwora Consulting", "5.41", "5.42", "5.36", "5.50", 500, 300),
    _instrument("Systeria Develop", "13.94", "13.95", "13.90", "13.95", 3000, 1000),
    _instrument("Thewlec Asia", "16.79", "16.84", "16.81", "16.87", 20000, 1000),
    _instrument("Virtutis", "6.87", "7.05", "6.74", "7.05", 20000, 4000),
    _instrument("Yahl", "11.27", "11.29", "11.29", "11.31", 20000, 1000),
)
