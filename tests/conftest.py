"""
Shared fixtures.
"""

import pytest

from pricewatch.infrastructure.cache.snapshot_cache import SnapshotCache
from pricewatch.services.monitoring.notifier import PriceChangeNotifier
from pricewatch.services.monitoring.scan_engine import PriceScanEngine
from tests.fakes import FakeClock, FakeCatalogRepository, RecordingBroker

QUEUE = "price-changes"

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def catalog(clock):
    return FakeCatalogRepository(clock)

@pytest.fixture
def broker():
    return RecordingBroker()

@pytest.fixture
def cache():
    return SnapshotCache()

@pytest.fixture
def notifier(broker):
    return PriceChangeNotifier(broker, QUEUE, enabled=True)

@pytest.fixture
def engine(catalog, cache, notifier, clock):
    return PriceScanEngine(
        catalog_scope=catalog.scope,
        cache=cache,
        notifier=notifier,
        poll_interval_ms=30000,
        max_batch_size=100,
        initial_lookback_minutes=5,
        clock=clock
    )
