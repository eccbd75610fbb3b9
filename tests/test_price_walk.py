"""Tests for the mean-reverting price walk."""

import random
import statistics

import pytest

from quotefeed.data.catalog import InstrumentCatalog
from quotefeed.data.price_walk import PriceWalk, WalkState


class RecordingRandom(random.Random):
    """Seeded random source that records randint bounds."""

    def __init__(self, seed):
        super().__init__(seed)
        self.randint_calls = []

    def randint(self, a, b):
        self.randint_calls.append((a, b))
        return super().randint(a, b)


class TestInitialState:
    def test_starts_at_open(self, make_definition):
        walk = PriceWalk(make_definition(ref_price=1000, open_price=1020, min_price=990, max_price=1050), random.Random(1))
        assert walk.snapshot() == WalkState(last=1020, other=1020, min=990, max=1050)

    def test_band_widened_to_include_open(self):
        # Ress Devices opens below its configured min
        definition = InstrumentCatalog.default().by_item_id("item22")
        assert definition.open_price < definition.min_price

        walk = PriceWalk(definition, random.Random(1))
        assert walk.min == definition.open_price
        assert walk.min <= walk.last <= walk.max


class TestNextInterval:
    def test_always_positive(self, make_definition):
        # Mean far below stddev forces frequent rejections
        walk = PriceWalk(make_definition(mean_interval_ms=1, stddev_interval_ms=1000), random.Random(7))
        samples = [walk.next_interval() for _ in range(2000)]
        assert all(s > 0 for s in samples)

    def test_whole_milliseconds(self, make_definition):
        walk = PriceWalk(make_definition(mean_interval_ms=500, stddev_interval_ms=300), random.Random(3))
        for _ in range(200):
            interval = walk.next_interval()
            assert interval == int(interval)

    def test_centred_on_mean(self, make_definition):
        walk = PriceWalk(make_definition(mean_interval_ms=7000, stddev_interval_ms=100), random.Random(11))
        samples = [walk.next_interval() for _ in range(2000)]
        assert statistics.mean(samples) == pytest.approx(7000, abs=20)


class TestAdvance:
    def test_bounds_hold_for_every_default_instrument(self):
        for index, definition in enumerate(InstrumentCatalog.default()):
            walk = PriceWalk(definition, random.Random(index))
            for _ in range(2000):
                assert walk.min <= walk.last <= walk.max
                walk.advance()
                assert walk.min <= walk.last <= walk.max

    def test_first_step_bounded_by_jump(self, make_definition):
        for seed in range(200):
            walk = PriceWalk(make_definition(ref_price=1000), random.Random(seed))
            walk.advance()
            assert abs(walk.last - 1000) <= 1000 // 100

    def test_every_step_bounded_by_jump(self, make_definition):
        walk = PriceWalk(make_definition(ref_price=5000), random.Random(5))
        previous = walk.last
        for _ in range(1000):
            walk.advance()
            assert abs(walk.last - previous) <= 50
            previous = walk.last

    def test_other_is_nonzero_gap_from_last(self, make_definition):
        walk = PriceWalk(make_definition(ref_price=1000), random.Random(9))
        gap = 1000 // 250
        seen = set()
        for _ in range(2000):
            walk.advance()
            delta = walk.other - walk.last
            assert delta != 0
            assert -gap <= delta <= gap
            seen.add(delta)
        assert seen == {-4, -3, -2, -1, 1, 2, 3, 4}

    @pytest.mark.parametrize("ref_price", [0, 1, 249])
    def test_small_reference_uses_fixed_delta(self, make_definition, ref_price):
        rng = RecordingRandom(1)
        walk = PriceWalk(make_definition(ref_price=ref_price), rng)

        walk.advance()

        assert walk.other == walk.last + 1
        # Only the step size is drawn; the delta never enters rejection sampling
        assert rng.randint_calls == [(0, ref_price // 100)]

    def test_zero_reference_never_moves(self, make_definition):
        walk = PriceWalk(make_definition(ref_price=0), random.Random(2))
        for _ in range(100):
            walk.advance()
        assert walk.snapshot() == WalkState(last=0, other=1, min=0, max=0)

    def test_pulled_down_beyond_upper_limit(self, make_definition):
        # Twice the reference is past ref + ref/4, so it always turns back
        walk = PriceWalk(make_definition(ref_price=1000, open_price=2000), random.Random(4))
        previous = walk.last
        for _ in range(50):
            walk.advance()
            assert walk.last <= previous
            previous = walk.last
        assert walk.max == 2000

    def test_pulled_up_beyond_lower_limit(self, make_definition):
        walk = PriceWalk(make_definition(ref_price=1000, open_price=500), random.Random(4))
        previous = walk.last
        for _ in range(20):
            walk.advance()
            assert walk.last >= previous
            previous = walk.last

    def test_long_run_mean_reverts(self, make_definition):
        ref = 10000
        walk = PriceWalk(make_definition(ref_price=ref), random.Random(2024))
        lasts = []
        for _ in range(100_000):
            walk.advance()
            lasts.append(walk.last)

        assert abs(statistics.mean(lasts) - ref) < ref * 0.1
        # Excursions stay near the quarter-reference limit
        assert ref * 0.5 < min(lasts) and max(lasts) < ref * 1.5


class TestDeterminism:
    @staticmethod
    def _run(definition, seed, steps=500):
        walk = PriceWalk(definition, random.Random(seed))
        out = []
        for _ in range(steps):
            interval = walk.next_interval()
            walk.advance()
            out.append((walk.last, walk.other, interval))
        return out

    def test_same_seed_same_path(self, make_definition):
        definition = make_definition(ref_price=1609, mean_interval_ms=500, stddev_interval_ms=300)
        assert self._run(definition, 42) == self._run(definition, 42)

    def test_different_seed_different_path(self, make_definition):
        definition = make_definition(ref_price=1609)
        assert self._run(definition, 42) != self._run(definition, 43)
