"""
Snapshot cache janitor.

Bounds cache memory by evicting snapshots that have not been refreshed
within the retention window. An evicted item that shows up again is a
first sighting for the scan engine.
"""

from datetime import datetime, timedelta
from typing import Callable
import logging

from pricewatch.core.domain.entities import utcnow
from pricewatch.infrastructure.cache.snapshot_cache import SnapshotCache

CACHE_RETENTION_HOURS = 24

class CacheJanitor:

    def __init__(self, cache: SnapshotCache, clock: Callable[[], datetime] = utcnow):
        self.logger = logging.getLogger(__name__)
        self.cache = cache
        self.clock = clock
        self.retention = timedelta(hours=CACHE_RETENTION_HOURS)

    def sweep(self) -> int:
        """Evict snapshots observed before now - retention."""
        cutoff = self.clock() - self.retention
        removed = self.cache.remove_where(lambda observed_at: observed_at < cutoff)

        if removed:
            self.logger.debug(f"Cleaned up {removed} stale cache entries")
        return removed
