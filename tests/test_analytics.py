"""
Price analytics tests.
"""

from decimal import Decimal

import pytest

from pricewatch.core.exceptions import ResourceNotFoundError, ValidationError
from pricewatch.services.monitoring.analytics import PriceAnalyticsService

@pytest.fixture
def analytics(catalog):
    catalog.add(1, "100.00", category="tools")
    catalog.set_price(1, "80.00")           # -20%
    catalog.add(2, "50.00", category="home")
    catalog.set_price(2, "55.00")           # +10%
    catalog.add(3, "10.00", category="tools")
    catalog.set_price(3, "9.50")            # -5%
    catalog.add(4, "30.00", category="home")  # unchanged
    return PriceAnalyticsService(catalog.scope)

class TestChangeViews:

    def test_recent_changes(self, analytics):
        ids = sorted(e.item_id for e in analytics.recent_changes())
        assert ids == [1, 2, 3]

    def test_item_change(self, analytics):
        event = analytics.item_change(2)
        assert event.change_amount == Decimal("5.00")
        assert event.change_percentage == 10.0

    def test_item_without_change_returns_none(self, analytics):
        assert analytics.item_change(4) is None

    def test_unknown_item_raises(self, analytics):
        with pytest.raises(ResourceNotFoundError):
            analytics.item_change(999)

    def test_offers_are_decreases(self, analytics):
        ids = sorted(e.item_id for e in analytics.offers())
        assert ids == [1, 3]

    def test_offers_by_category(self, analytics):
        assert [e.item_id for e in analytics.offers("home")] == []
        assert sorted(e.item_id for e in analytics.offers("tools")) == [1, 3]

    def test_price_increases(self, analytics):
        assert [e.item_id for e in analytics.price_increases()] == [2]

class TestAlerts:

    def test_significant_changes_inclusive_threshold(self, analytics):
        ids = sorted(e.item_id for e in analytics.significant_changes(10.0))
        assert ids == [1, 2]

    def test_zero_threshold_returns_all_changes(self, analytics):
        assert len(analytics.significant_changes(0)) == 3

    def test_negative_threshold_rejected(self, analytics):
        with pytest.raises(ValidationError):
            analytics.significant_changes(-1)

    def test_default_threshold_is_used_when_omitted(self, analytics):
        assert analytics.significant_change_threshold == 10.0
        assert sorted(e.item_id for e in analytics.significant_changes()) == [1, 2]

    def test_updated_threshold_becomes_default(self, analytics):
        analytics.set_significant_change_threshold(15.0)

        assert [e.item_id for e in analytics.significant_changes()] == [1]

    def test_negative_default_threshold_rejected(self, analytics):
        with pytest.raises(ValidationError):
            analytics.set_significant_change_threshold(-0.5)
        assert analytics.significant_change_threshold == 10.0

class TestStatistics:

    def test_statistics(self, analytics):
        stats = analytics.statistics()

        assert stats["total_items"] == 4
        assert stats["items_with_price_changes"] == 3
        assert stats["price_increases"] == 1
        assert stats["price_decreases"] == 2
        assert stats["average_price_change_percentage"] == -5.0
        assert "last_updated" in stats

    def test_statistics_empty_catalog(self, catalog):
        stats = PriceAnalyticsService(catalog.scope).statistics()

        assert stats["total_items"] == 0
        assert stats["average_price_change_percentage"] == 0.0
