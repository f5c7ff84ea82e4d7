"""
Price Scan Engine

Polls the catalog for items modified since the last watermark, diffs each
against the snapshot cache and publishes a change event for every real
price transition.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Dict, Any
from datetime import datetime, timedelta
import logging
import time

from pricewatch.core.domain.entities import CatalogItem, PriceSnapshot, PriceChangeEvent, utcnow
from pricewatch.core.domain.repositories import CatalogScope
from pricewatch.core.enums import ScanStatus, ChangeReason
from pricewatch.core.exceptions import ItemProcessingError, handle_exception
from pricewatch.core.logging_config import LoggingContext, log_exception, log_performance
from pricewatch.infrastructure.cache.snapshot_cache import SnapshotCache
from pricewatch.services.monitoring.notifier import PriceChangeNotifier

# ======================== DATA MODELS ========================

@dataclass
class ScanCycleResult:
    """Counters for one scan cycle."""
    status: ScanStatus
    started_at: datetime
    watermark: datetime
    fetched: int = 0
    processed: int = 0
    notifications_sent: int = 0
    failed: int = 0
    deferred: int = 0
    duration_ms: int = 0
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "watermark": self.watermark.isoformat(),
            "fetched": self.fetched,
            "processed": self.processed,
            "notifications_sent": self.notifications_sent,
            "failed": self.failed,
            "deferred": self.deferred,
            "duration_ms": self.duration_ms,
            "error_message": self.error_message
        }

@dataclass(frozen=True)
class MonitoringStatus:
    """Read-only view of the engine state."""
    enabled: bool
    last_poll_time: datetime
    poll_interval_ms: int
    max_batch_size: int
    cached_items: int
    cache_hits: int = 0
    cache_misses: int = 0
    notifications_published: int = 0
    notifications_failed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "last_poll_time": self.last_poll_time.isoformat(),
            "poll_interval_ms": self.poll_interval_ms,
            "max_batch_size": self.max_batch_size,
            "cached_items": self.cached_items,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "notifications_published": self.notifications_published,
            "notifications_failed": self.notifications_failed
        }

# ======================== SCAN ENGINE ========================

class PriceScanEngine:
    """
    Recurring change detection over the catalog.

    State between cycles is the watermark and the snapshot cache. The
    watermark moves to the cycle start time only once the item loop has
    finished, so a cycle that fails before that retries the same window.
    Items beyond ``max_batch_size`` keep a modification time at or after
    the new watermark and are fetched again next cycle.
    """

    def __init__(
        self,
        catalog_scope: CatalogScope,
        cache: SnapshotCache,
        notifier: PriceChangeNotifier,
        poll_interval_ms: int = 30000,
        max_batch_size: int = 100,
        initial_lookback_minutes: int = 5,
        clock: Callable[[], datetime] = utcnow
    ):
        self.logger = logging.getLogger(__name__)
        self.catalog_scope = catalog_scope
        self.cache = cache
        self.notifier = notifier
        self.poll_interval_ms = poll_interval_ms
        self.max_batch_size = max_batch_size
        self.clock = clock

        self.last_poll_time = self.clock() - timedelta(minutes=initial_lookback_minutes)

    # ======================== SCAN CYCLE ========================

    def run_scan_cycle(self) -> ScanCycleResult:
        """Run one polling cycle. Never raises."""
        if not self.notifier.is_enabled():
            self.logger.debug("Price monitoring is disabled, skipping poll")
            return ScanCycleResult(
                status=ScanStatus.SKIPPED,
                started_at=self.clock(),
                watermark=self.last_poll_time
            )

        cycle_start = self.clock()
        watermark = self.last_poll_time
        result = ScanCycleResult(status=ScanStatus.SUCCESS, started_at=cycle_start, watermark=watermark)
        timer = time.perf_counter()

        with LoggingContext():
            try:
                with self.catalog_scope() as catalog:
                    items = catalog.find_changed_since(watermark)

                result.fetched = len(items)
                self.logger.info(f"Found {len(items)} items updated since {watermark.isoformat()}")

                for item in items:
                    if result.processed + result.failed >= self.max_batch_size:
                        result.deferred = len(items) - (result.processed + result.failed)
                        self.logger.warning(
                            f"Reached maximum batch size of {self.max_batch_size}. "
                            f"{result.deferred} items will be processed in next poll"
                        )
                        break

                    try:
                        if self.process_item(item):
                            result.notifications_sent += 1
                        result.processed += 1
                    except Exception as e:
                        result.failed += 1
                        handle_exception(
                            e,
                            self.logger,
                            default_error_code="ITEM_PROCESSING_FAILED",
                            context={"item_id": getattr(item, "id", None)}
                        )

                self.last_poll_time = cycle_start
                result.watermark = cycle_start
                if result.failed:
                    result.status = ScanStatus.PARTIAL

                self.logger.info(
                    f"Price monitoring poll completed. Processed: {result.processed}, "
                    f"Notifications sent: {result.notifications_sent}, Failed: {result.failed}"
                )

            except Exception as e:
                result.status = ScanStatus.FAILED
                result.error_message = str(e)
                self.logger.error(f"Error during price monitoring poll: {e}", exc_info=True)

            result.duration_ms = int((time.perf_counter() - timer) * 1000)
            log_performance(
                self.logger,
                "price_scan_cycle",
                result.duration_ms,
                success=result.status.is_successful(),
                fetched=result.fetched,
                processed=result.processed
            )

        return result

    def process_item(self, item: CatalogItem) -> bool:
        """
        Diff one item against its cached snapshot.

        Returns:
            True if a change event was handed to the notifier
        """
        if item.id is None:
            raise ItemProcessingError(None, "catalog item has no id")

        previous = self.cache.get(item.id)
        current = PriceSnapshot.observe(item, observed_at=self.clock())

        # The cache always reflects the latest observation
        self.cache.put(item.id, current)

        if previous is None:
            self.logger.debug(f"First time seeing item {item.id}, storing initial price snapshot")
            return False

        if previous.has_price and current.has_price and previous.price.compare(current.price) != 0:
            event = PriceChangeEvent.from_prices(
                item_id=item.id,
                item_name=item.name,
                category=item.category,
                old_price=previous.price,
                new_price=current.price,
                reason=ChangeReason.POLLING.value,
                occurred_at=current.observed_at
            )
            self.logger.info(
                f"Price change detected for item {item.id}: {previous.price} -> {current.price}",
                extra={
                    "item_id": item.id,
                    "change_type": event.change_type.value,
                    "previous_revision": previous.revision,
                    "current_revision": current.revision
                }
            )
            # Broker failures are counted by the notifier
            self.notifier.publish(event)
            return True

        return False

    # ======================== RESYNC ========================

    def force_full_scan(self) -> int:
        """
        Overwrite the cache with every active item. Publishes nothing.

        Returns:
            Number of snapshots written before completion or failure
        """
        self.logger.info("Starting forced full scan of all items")
        cached = 0

        try:
            with self.catalog_scope() as catalog:
                items = catalog.find_all_active()
            self.logger.info(f"Found {len(items)} active items for full scan")

            for item in items:
                self.cache.put(item.id, PriceSnapshot.observe(item, observed_at=self.clock()))
                cached += 1

            self.logger.info(f"Full scan completed, cached {cached} item snapshots")

        except Exception as e:
            log_exception(self.logger, e, {"operation": "force_full_scan", "cached": cached})

        return cached

    # ======================== STATUS ========================

    def get_status(self) -> MonitoringStatus:
        cache_stats = self.cache.get_stats()
        notifier_stats = self.notifier.get_stats()
        return MonitoringStatus(
            enabled=self.notifier.is_enabled(),
            last_poll_time=self.last_poll_time,
            poll_interval_ms=self.poll_interval_ms,
            max_batch_size=self.max_batch_size,
            cached_items=cache_stats["entries"],
            cache_hits=cache_stats["hits"],
            cache_misses=cache_stats["misses"],
            notifications_published=notifier_stats["published"],
            notifications_failed=notifier_stats["failed"]
        )
