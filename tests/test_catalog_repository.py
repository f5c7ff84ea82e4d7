"""
SQLAlchemy catalog repository and entity hook tests on in-memory SQLite.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from unittest.mock import Mock

from pricewatch.core.domain.entities import utcnow
from pricewatch.core.enums import PriceChangeType, ChangeReason
from pricewatch.core.exceptions import CatalogQueryError
from pricewatch.infrastructure.database.connection import DatabaseManager
from pricewatch.infrastructure.database.listeners import (
    register_price_change_listener, unregister_price_change_listener
)
from pricewatch.infrastructure.database.models import Product
from pricewatch.infrastructure.database.repositories.catalog import (
    SQLAlchemyCatalogRepository, make_catalog_scope
)
from pricewatch.services.monitoring.notifier import PriceChangeNotifier
from tests.fakes import RecordingBroker

# ======================== FIXTURES ========================

@pytest.fixture
def db_manager():
    manager = DatabaseManager("sqlite://")
    manager.create_tables()
    yield manager
    manager.close()

@pytest.fixture
def seeded(db_manager):
    with db_manager.get_session() as session:
        session.add_all([
            Product(name="Hammer", category="tools", price=Decimal("20.00")),
            Product(name="Saw", category="tools", price=Decimal("35.00"), previous_price=Decimal("40.00")),
            Product(name="Vase", category="home", price=Decimal("15.00"), is_active=False),
        ])
    return db_manager

@pytest.fixture
def scope(seeded):
    return make_catalog_scope(seeded)

@pytest.fixture
def listener_broker():
    broker = RecordingBroker()
    register_price_change_listener(PriceChangeNotifier(broker, "price-changes"))
    yield broker
    unregister_price_change_listener()

# ======================== QUERIES ========================

class TestCatalogQueries:

    def test_find_changed_since_recent_window(self, scope):
        with scope() as catalog:
            items = catalog.find_changed_since(utcnow() - timedelta(minutes=5))

        assert [i.name for i in items] == ["Hammer", "Saw", "Vase"]

    def test_find_changed_since_future_window_is_empty(self, scope):
        with scope() as catalog:
            assert catalog.find_changed_since(utcnow() + timedelta(minutes=5)) == []

    def test_mapping_to_catalog_item(self, scope):
        with scope() as catalog:
            item = catalog.get_by_id(2)

        assert item.current_price == Decimal("35.00")
        assert item.previous_price == Decimal("40.00")
        assert item.revision == 1
        assert item.category == "tools"
        assert item.last_modified is not None

    def test_get_unknown_returns_none(self, scope):
        with scope() as catalog:
            assert catalog.get_by_id(99) is None

    def test_find_all_active(self, scope):
        with scope() as catalog:
            assert [i.name for i in catalog.find_all_active()] == ["Hammer", "Saw"]

    def test_find_with_price_changes(self, scope):
        with scope() as catalog:
            assert [i.name for i in catalog.find_with_price_changes()] == ["Saw"]

    def test_find_active_by_category(self, scope):
        with scope() as catalog:
            assert [i.name for i in catalog.find_active_by_category("home")] == []
            assert len(catalog.find_active_by_category("tools")) == 2

    def test_count_all(self, scope):
        with scope() as catalog:
            assert catalog.count_all() == 3

    def test_health_check(self, scope):
        with scope() as catalog:
            assert catalog.health_check() is True

    def test_query_errors_are_wrapped(self):
        session = Mock()
        session.query.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        with pytest.raises(CatalogQueryError):
            SQLAlchemyCatalogRepository(session).find_changed_since(utcnow())

# ======================== PRICE WRITES ========================

class TestUpdatePrice:

    def test_update_records_previous_price_and_bumps_revision(self, scope):
        with scope() as catalog:
            item = catalog.update_price(1, Decimal("18.00"))

        assert item.previous_price == Decimal("20.00")
        assert item.current_price == Decimal("18.00")

        with scope() as catalog:
            reloaded = catalog.get_by_id(1)
        assert reloaded.revision == 2
        assert reloaded.has_price_changed

    def test_update_unknown_item(self, scope):
        with scope() as catalog:
            assert catalog.update_price(99, Decimal("1.00")) is None

    def test_updated_item_is_visible_to_next_scan_window(self, scope):
        watermark = utcnow()
        with scope() as catalog:
            catalog.update_price(1, Decimal("22.00"))

        with scope() as catalog:
            assert [i.id for i in catalog.find_changed_since(watermark)] == [1]

# ======================== ENTITY HOOK ========================

class TestPriceChangeListener:

    def test_price_write_publishes_event(self, scope, listener_broker):
        with scope() as catalog:
            catalog.update_price(1, Decimal("25.00"))

        assert len(listener_broker.events) == 1
        event = listener_broker.events[0]
        assert event.item_id == 1
        assert event.old_price == Decimal("20.00")
        assert event.new_price == Decimal("25.00")
        assert event.change_type == PriceChangeType.INCREASE
        assert event.reason == ChangeReason.CATALOG_WRITE.value

    def test_non_price_write_is_silent(self, seeded, listener_broker):
        with seeded.get_session() as session:
            session.get(Product, 1).name = "Claw Hammer"

        assert listener_broker.published == []

    def test_cleared_price_is_reset(self, scope, listener_broker):
        with scope() as catalog:
            catalog.update_price(1, None)

        assert listener_broker.events[0].change_type == PriceChangeType.RESET

    def test_register_twice_keeps_one_handler(self, scope, listener_broker):
        second = RecordingBroker()
        register_price_change_listener(PriceChangeNotifier(second, "price-changes"))

        with scope() as catalog:
            catalog.update_price(1, Decimal("21.00"))

        assert listener_broker.published == []
        assert len(second.published) == 1

    def test_unregistered_listener_is_silent(self, scope):
        broker = RecordingBroker()
        register_price_change_listener(PriceChangeNotifier(broker, "price-changes"))
        unregister_price_change_listener()

        with scope() as catalog:
            catalog.update_price(1, Decimal("21.00"))

        assert broker.published == []
