"""Shared fixtures."""

from __future__ import annotations

import pytest

from quotefeed.data.catalog import InstrumentDefinition


def _make_definition(
    item_id: str = "item1",
    ref_price: int = 1000,
    open_price: int | None = None,
    min_price: int | None = None,
    max_price: int | None = None,
    mean_interval_ms: float = 500,
    stddev_interval_ms: float = 100,
    stock_name: str = "Test Corp",
) -> InstrumentDefinition:
    """Definition with prices in hundredths; bounds default to the opening price."""
    open_price = ref_price if open_price is None else open_price
    return InstrumentDefinition(
        item_id=item_id,
        stock_name=stock_name,
        ref_price=ref_price,
        open_price=open_price,
        min_price=open_price if min_price is None else min_price,
        max_price=open_price if max_price is None else max_price,
        mean_interval_ms=mean_interval_ms,
        stddev_interval_ms=stddev_interval_ms,
    )


@pytest.fixture
def make_definition():
    """Factory for instrument definitions."""
    return _make_definition


@pytest.fixture
def definition() -> InstrumentDefinition:
    return _make_definition()
