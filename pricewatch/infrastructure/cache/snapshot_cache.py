"""
Snapshot Cache

In-memory map of item id to its last observed price snapshot.

The scan engine and the cache janitor run on independent schedules, so
every operation takes the internal lock; callers never synchronise.
"""

import threading
from typing import Callable, Dict, Optional
from datetime import datetime

from pricewatch.core.domain.entities import PriceSnapshot
from pricewatch.core.logging_config import get_logger

class SnapshotCache:
    """Mutex-guarded snapshot map with hit/miss counters."""

    def __init__(self):
        self.logger = get_logger("cache.snapshots")
        self._entries: Dict[int, PriceSnapshot] = {}
        self._lock = threading.Lock()

        self.hit_count = 0
        self.miss_count = 0

    def get(self, item_id: int) -> Optional[PriceSnapshot]:
        with self._lock:
            snapshot = self._entries.get(item_id)
            if snapshot is None:
                self.miss_count += 1
            else:
                self.hit_count += 1
            return snapshot

    def put(self, item_id: int, snapshot: PriceSnapshot) -> None:
        """Store a snapshot, replacing any previous entry."""
        with self._lock:
            self._entries[item_id] = snapshot

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def remove_where(self, predicate: Callable[[datetime], bool]) -> int:
        """
        Remove every snapshot whose observed_at satisfies ``predicate``.

        Returns:
            Number of entries removed
        """
        with self._lock:
            stale = [
                item_id for item_id, snapshot in self._entries.items()
                if predicate(snapshot.observed_at)
            ]
            for item_id in stale:
                del self._entries[item_id]

        if stale:
            self.logger.debug(f"Removed {len(stale)} snapshots")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self.hit_count,
                "misses": self.miss_count
            }
