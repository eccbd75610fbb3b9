"""Tests for FeedSimulator."""

import io
import json
import threading
import time

import pytest

from quotefeed.data.catalog import InstrumentCatalog
from quotefeed.feed.listener import CallbackListener, JsonLinesListener
from quotefeed.feed.simulator import FeedSimulator, make_random_sources


class Collector:
    def __init__(self):
        self.events = []
        self.lock = threading.Lock()

    def __call__(self, item_id, fields, is_snapshot):
        with self.lock:
            self.events.append((item_id, fields, is_snapshot))

    def snapshots(self):
        with self.lock:
            return [e for e in self.events if e[2]]


@pytest.fixture
def collector():
    return Collector()


@pytest.fixture
def slow_catalog(make_definition):
    # Long intervals so nothing fires during a test
    return InstrumentCatalog(
        make_definition(f"item{i}", ref_price=1000 + i, mean_interval_ms=600_000, stddev_interval_ms=1)
        for i in range(1, 4)
    )


class TestRandomSources:
    def test_seeded_sources_are_reproducible(self):
        a = [r.random() for r in make_random_sources(5, seed=7)]
        b = [r.random() for r in make_random_sources(5, seed=7)]
        assert a == b

    def test_streams_are_independent(self):
        draws = [r.random() for r in make_random_sources(5, seed=7)]
        assert len(set(draws)) == 5

    def test_different_seeds_differ(self):
        a = [r.random() for r in make_random_sources(3, seed=1)]
        b = [r.random() for r in make_random_sources(3, seed=2)]
        assert a != b

    def test_unseeded(self):
        assert len(make_random_sources(4)) == 4


class TestFeedSimulator:
    def test_uses_default_catalog(self, collector):
        feed = FeedSimulator(CallbackListener(collector))
        assert feed.catalog.count() == 30

    def test_start_builds_one_slot_per_instrument(self, collector, slow_catalog):
        feed = FeedSimulator(CallbackListener(collector), slow_catalog, seed=1)
        feed.start()
        try:
            assert [s.item_id for s in feed.slots] == ["item1", "item2", "item3"]
            assert feed.scheduler.pending() == 3
            assert feed.running
        finally:
            feed.stop()
        assert not feed.running

    def test_start_twice_duplicates_timers(self, collector, slow_catalog):
        feed = FeedSimulator(CallbackListener(collector), slow_catalog)
        feed.start()
        feed.start()
        try:
            assert len(feed.slots) == 6
            assert feed.scheduler.pending() == 6
        finally:
            feed.stop()

    def test_snapshot_publishes_without_advancing(self, collector, slow_catalog):
        with FeedSimulator(CallbackListener(collector), slow_catalog, seed=3) as feed:
            fields = feed.snapshot("item2")

        assert fields["last_price"] == "10.02"
        assert fields["open_price"] == "10.02"
        assert collector.snapshots() == [("item2", fields, True)]
        assert feed.slots[1].fired == 0

    def test_snapshot_unknown_item(self, collector, slow_catalog):
        with FeedSimulator(CallbackListener(collector), slow_catalog) as feed:
            with pytest.raises(KeyError):
                feed.snapshot("item99")

    def test_snapshot_on_start(self, collector, slow_catalog):
        feed = FeedSimulator(CallbackListener(collector), slow_catalog, snapshot_on_start=True)
        feed.start()
        feed.stop()
        assert [e[0] for e in collector.snapshots()] == ["item1", "item2", "item3"]

    def test_seeded_runs_match_per_instrument(self, make_definition):
        catalog = InstrumentCatalog(
            make_definition(f"item{i}", ref_price=2000, mean_interval_ms=2, stddev_interval_ms=1)
            for i in range(1, 3)
        )

        def run_once():
            collector = Collector()
            feed = FeedSimulator(CallbackListener(collector), catalog, seed=99, pool_size=2)
            feed.start()
            time.sleep(0.3)
            feed.stop()
            per_item = {}
            for item_id, fields, _ in collector.events:
                per_item.setdefault(item_id, []).append((fields["last_price"], fields["bid"], fields["ask"]))
            return per_item

        first, second = run_once(), run_once()
        for item_id in ("item1", "item2"):
            n = min(len(first[item_id]), len(second[item_id]))
            assert n >= 5
            assert first[item_id][:n] == second[item_id][:n]


class TestJsonLinesListener:
    def test_writes_one_object_per_update(self):
        stream = io.StringIO()
        listener = JsonLinesListener(stream)

        listener.on_update("item1", {"last_price": "3.10"}, False)
        listener.on_update("item2", {"last_price": "16.20"}, True)

        lines = stream.getvalue().splitlines()
        assert listener.count == 2
        assert json.loads(lines[0]) == {"item": "item1", "snapshot": False, "fields": {"last_price": "3.10"}}
        assert json.loads(lines[1])["snapshot"] is True
