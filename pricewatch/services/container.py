"""
Service wiring for the monitoring engine.

One container per process: the snapshot cache and the notifier flag are
process-local state shared by the scheduled tasks and the API.
"""

import threading
from typing import Optional

from pricewatch.core.config import settings, MonitoringSettings
from pricewatch.core.domain.repositories import CatalogScope, MessageBroker
from pricewatch.infrastructure.cache.snapshot_cache import SnapshotCache
from pricewatch.services.monitoring.notifier import PriceChangeNotifier
from pricewatch.services.monitoring.scan_engine import PriceScanEngine
from pricewatch.services.monitoring.cache_janitor import CacheJanitor
from pricewatch.services.monitoring.analytics import PriceAnalyticsService

class MonitoringContainer:
    """Builds and holds the engine components."""

    def __init__(
        self,
        catalog_scope: CatalogScope,
        broker: MessageBroker,
        config: Optional[MonitoringSettings] = None
    ):
        config = config or settings.monitoring
        self.config = config
        self.catalog_scope = catalog_scope
        self.broker = broker

        self.cache = SnapshotCache()
        self.notifier = PriceChangeNotifier(
            broker=broker,
            queue_name=config.queue_name,
            enabled=config.notifications_enabled
        )
        self.engine = PriceScanEngine(
            catalog_scope=catalog_scope,
            cache=self.cache,
            notifier=self.notifier,
            poll_interval_ms=config.poll_interval_ms,
            max_batch_size=config.max_batch_size,
            initial_lookback_minutes=config.initial_lookback_minutes
        )
        self.janitor = CacheJanitor(self.cache)
        self.analytics = PriceAnalyticsService(
            catalog_scope,
            significant_change_threshold=config.significant_change_threshold
        )

_container: Optional[MonitoringContainer] = None
_container_lock = threading.Lock()

def get_container() -> MonitoringContainer:
    """Process-wide container backed by the configured database and broker."""
    global _container
    with _container_lock:
        if _container is None:
            from pricewatch.infrastructure.database.repositories.catalog import make_catalog_scope
            from pricewatch.infrastructure.messaging.broker import KombuMessageBroker

            _container = MonitoringContainer(
                catalog_scope=make_catalog_scope(),
                broker=KombuMessageBroker()
            )
        return _container

def set_container(container: Optional[MonitoringContainer]) -> None:
    """Install a container (tests, alternative wiring)."""
    global _container
    with _container_lock:
        _container = container
