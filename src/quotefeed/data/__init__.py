"""Data Module - Instrument reference data, price walks and quote encoding."""

from quotefeed.data.catalog import CatalogError, InstrumentCatalog, InstrumentDefinition
from quotefeed.data.field_encoder import QuoteRecord, encode
from quotefeed.data.price_walk import PriceWalk, WalkState

__all__ = [
    "CatalogError",
    "InstrumentCatalog",
    "InstrumentDefinition",
    "PriceWalk",
    "QuoteRecord",
    "WalkState",
    "encode",
]
