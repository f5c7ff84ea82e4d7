"""
Price Analytics Service

Read-only projections over the catalog's stored previous/current price
pairs: recent changes, offers, alerts and aggregate statistics.
"""

from typing import List, Dict, Any, Optional
from decimal import Decimal
import logging

from pricewatch.core.domain.entities import PriceChangeEvent, CatalogItem, utcnow
from pricewatch.core.domain.repositories import CatalogScope
from pricewatch.core.exceptions import ResourceNotFoundError, ValidationError

class PriceAnalyticsService:
    """Change-event views built from catalog data, never from the cache."""

    def __init__(self, catalog_scope: CatalogScope, significant_change_threshold: float = 10.0):
        self.logger = logging.getLogger(__name__)
        self.catalog_scope = catalog_scope
        self.significant_change_threshold = self._validate_threshold(significant_change_threshold)

    @staticmethod
    def _validate_threshold(threshold: float) -> float:
        if threshold < 0:
            raise ValidationError("Threshold must be non-negative", field="threshold", value=threshold)
        return threshold

    def set_significant_change_threshold(self, threshold: float) -> float:
        """Change the default threshold used by significant change alerts."""
        self.significant_change_threshold = self._validate_threshold(threshold)
        self.logger.info(f"Significant change threshold set to {threshold}%")
        return self.significant_change_threshold

    def _changed_items(self) -> List[CatalogItem]:
        with self.catalog_scope() as catalog:
            items = catalog.find_with_price_changes()
        return [item for item in items if item.has_price_changed]

    # ======================== CHANGE VIEWS ========================

    def recent_changes(self) -> List[PriceChangeEvent]:
        return [item.to_change_event() for item in self._changed_items()]

    def item_change(self, item_id: int) -> Optional[PriceChangeEvent]:
        """
        Change event for one item.

        Raises:
            ResourceNotFoundError: unknown item

        Returns:
            None when the item has no recorded price change
        """
        with self.catalog_scope() as catalog:
            item = catalog.get_by_id(item_id)

        if item is None:
            raise ResourceNotFoundError("Item", item_id)
        if not item.has_price_changed:
            return None
        return item.to_change_event()

    def offers(self, category: Optional[str] = None) -> List[PriceChangeEvent]:
        """Price decreases, optionally restricted to one category."""
        if category is None:
            items = self._changed_items()
        else:
            with self.catalog_scope() as catalog:
                items = [i for i in catalog.find_active_by_category(category) if i.has_price_changed]

        events = [item.to_change_event() for item in items]
        return [event for event in events if event.change_amount < 0]

    def price_increases(self) -> List[PriceChangeEvent]:
        return [event for event in self.recent_changes() if event.change_amount > 0]

    def significant_changes(self, threshold: Optional[float] = None) -> List[PriceChangeEvent]:
        if threshold is None:
            threshold = self.significant_change_threshold
        self._validate_threshold(threshold)
        return [
            event for event in self.recent_changes()
            if abs(event.change_percentage) >= threshold
        ]

    # ======================== STATISTICS ========================

    def statistics(self) -> Dict[str, Any]:
        with self.catalog_scope() as catalog:
            total_items = catalog.count_all()
            changed = [i for i in catalog.find_with_price_changes() if i.has_price_changed]

        events = [item.to_change_event() for item in changed]
        increases = sum(1 for e in events if e.change_amount > Decimal("0"))
        decreases = sum(1 for e in events if e.change_amount < Decimal("0"))

        average = 0.0
        if events:
            average = sum(e.change_percentage for e in events) / len(events)

        return {
            "total_items": total_items,
            "items_with_price_changes": len(events),
            "price_increases": increases,
            "price_decreases": decreases,
            "average_price_change_percentage": round(average, 2),
            "last_updated": utcnow().isoformat()
        }
