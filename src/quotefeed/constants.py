"""Core constants for quotefeed."""

from decimal import Decimal
from enum import Enum


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class FeedStatus(str, Enum):
    """Item status carried on every quote record."""

    ACTIVE = "active"


# ============================================
# Quote Generation
# ============================================

# Prices are held as integer hundredths of a unit
PRICE_SCALE = 100
PRICE_QUANTUM = Decimal("0.01")

# Walk shape, as divisors of the reference price
WALK_LIMIT_DIVISOR = 4
WALK_JUMP_DIVISOR = 100
SPREAD_GAP_DIVISOR = 250

# Quantities are lots of 500 shares, 1..200 lots
QUANTITY_LOT = 500
QUANTITY_MIN_LOTS = 1
QUANTITY_MAX_LOTS = 200

TIME_FORMAT = "%H:%M:%S"

# Output field order
QUOTE_FIELDS = (
    "time",
    "last_price",
    "bid",
    "ask",
    "bid_quantity",
    "ask_quantity",
    "pct_change",
    "min",
    "max",
    "stock_name",
    "ref_price",
    "open_price",
    "item_status",
)

# ============================================
# Default Values
# ============================================

DEFAULT_POOL_SIZE = 2
DEFAULT_ITEM_PREFIX = "item"

# ============================================
# Application Constants
# ============================================

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
