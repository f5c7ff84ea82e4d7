"""
Snapshot cache and janitor tests.
"""

import threading
from datetime import timedelta
from decimal import Decimal

from pricewatch.core.domain.entities import PriceSnapshot
from pricewatch.infrastructure.cache.snapshot_cache import SnapshotCache
from pricewatch.services.monitoring.cache_janitor import CacheJanitor, CACHE_RETENTION_HOURS

def make_snapshot(item_id, observed_at, price="10.00"):
    return PriceSnapshot(item_id=item_id, price=Decimal(price), observed_at=observed_at, revision=1)

class TestSnapshotCache:

    def test_put_replaces_entry(self, clock):
        cache = SnapshotCache()
        cache.put(1, make_snapshot(1, clock(), "10.00"))
        cache.put(1, make_snapshot(1, clock(), "12.00"))

        assert cache.size() == 1
        assert cache.get(1).price == Decimal("12.00")

    def test_get_missing_returns_none(self):
        cache = SnapshotCache()

        assert cache.get(42) is None
        assert cache.get_stats()["misses"] == 1

    def test_remove_where_counts_removed(self, clock):
        cache = SnapshotCache()
        cache.put(1, make_snapshot(1, clock() - timedelta(hours=2)))
        cache.put(2, make_snapshot(2, clock()))

        removed = cache.remove_where(lambda observed_at: observed_at < clock() - timedelta(hours=1))

        assert removed == 1
        assert cache.get(1) is None
        assert cache.get(2) is not None

    def test_clear(self, clock):
        cache = SnapshotCache()
        cache.put(1, make_snapshot(1, clock()))
        cache.clear()

        assert len(cache) == 0

    def test_concurrent_put_and_sweep(self, clock):
        cache = SnapshotCache()
        old = clock() - timedelta(days=2)

        def writer(offset):
            for i in range(500):
                cache.put(offset + i, make_snapshot(offset + i, old))

        def sweeper():
            for _ in range(50):
                cache.remove_where(lambda observed_at: observed_at < clock())

        threads = [threading.Thread(target=writer, args=(n * 1000,)) for n in range(4)]
        threads.append(threading.Thread(target=sweeper))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        cache.remove_where(lambda observed_at: observed_at < clock())
        assert cache.size() == 0

class TestCacheJanitor:

    def test_retention_is_24_hours(self):
        assert CACHE_RETENTION_HOURS == 24

    def test_sweep_removes_only_expired(self, clock):
        cache = SnapshotCache()
        cache.put(1, make_snapshot(1, clock() - timedelta(hours=23)))
        cache.put(2, make_snapshot(2, clock() - timedelta(hours=25)))
        janitor = CacheJanitor(cache, clock=clock)

        removed = janitor.sweep()

        assert removed == 1
        assert cache.get(1) is not None
        assert cache.get(2) is None

    def test_sweep_empty_cache(self, clock):
        assert CacheJanitor(SnapshotCache(), clock=clock).sweep() == 0

    def test_evicted_item_is_first_sighting_again(self, engine, catalog, cache, broker, clock):
        catalog.add(1, "10.00")
        engine.run_scan_cycle()

        clock.advance(hours=25)
        CacheJanitor(cache, clock=clock).sweep()
        catalog.set_price(1, "20.00")
        engine.run_scan_cycle()

        assert broker.published == []
        assert cache.get(1).price == Decimal("20.00")
