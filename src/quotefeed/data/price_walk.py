"""Mean-reverting price walk for a single instrument."""

from __future__ import annotations

import random
from dataclasses import dataclass

from quotefeed.constants import SPREAD_GAP_DIVISOR, WALK_JUMP_DIVISOR, WALK_LIMIT_DIVISOR
from quotefeed.data.catalog import InstrumentDefinition


@dataclass(frozen=True)
class WalkState:
    """Point-in-time copy of a walk's prices, in hundredths."""

    last: int
    other: int
    min: int
    max: int


class PriceWalk:
    """
    Random but non-divergent price path centred on the reference price.

    Each step moves ``last`` by up to 1% of the reference. The farther the price
    has drifted (relative to a quarter of the reference) the less likely it is to
    keep moving away, with a cubic weight so the pull only bites near the edge.

    Not thread-safe: callers serialise access per instrument.
    """

    def __init__(self, definition: InstrumentDefinition, rng: random.Random) -> None:
        self.definition = definition
        self.rng = rng

        self.last = definition.open_price
        self.other = definition.open_price
        # Catalog bands may exclude the opening price
        self.min = min(definition.min_price, self.last)
        self.max = max(definition.max_price, self.last)

    @property
    def ref(self) -> int:
        return self.definition.ref_price

    def next_interval(self) -> float:
        """
        Sample the wait in milliseconds before the next update.

        Gaussian draws are truncated to whole milliseconds and redrawn until
        strictly positive.
        """
        mean = self.definition.mean_interval_ms
        stddev = self.definition.stddev_interval_ms
        while True:
            millis = float(int(self.rng.gauss(mean, stddev)))
            if millis > 0:
                return millis

    def advance(self) -> None:
        """Move to the next price state."""
        ref = self.ref
        limit = ref / WALK_LIMIT_DIVISOR
        jump = ref // WALK_JUMP_DIVISOR

        rel_dist = (self.last - ref) / limit if limit else 0.0
        direction = 1
        if rel_dist < 0:
            direction = -1
            rel_dist = -rel_dist
        rel_dist = min(rel_dist, 1.0)

        weight = rel_dist**3
        prob_continue = (1 - weight) / 2
        if self.rng.random() >= prob_continue:
            direction = -direction

        difference = self.rng.randint(0, jump) * direction

        self.last += difference
        self.other = self.last + self._spread_delta()

        if self.last < self.min:
            self.min = self.last
        if self.last > self.max:
            self.max = self.last

    def _spread_delta(self) -> int:
        gap = self.ref // SPREAD_GAP_DIVISOR
        if gap <= 0:
            return 1
        while True:
            delta = self.rng.randint(-gap, gap)
            if delta != 0:
                return delta

    def snapshot(self) -> WalkState:
        return WalkState(last=self.last, other=self.other, min=self.min, max=self.max)
