"""
Fake Implementations for Testing

In-memory catalog, recording brokers and a controllable clock for unit
tests without a database or message broker.
"""

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterator, List, Optional

from pricewatch.core.domain.entities import CatalogItem, PriceChangeEvent

# ======================== CLOCK ========================

class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

# ======================== FAKE CATALOG ========================

class FakeCatalogRepository:
    """Fake catalog store keyed by item id."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.items: Dict[int, CatalogItem] = {}
        self.clock = clock or FakeClock()
        self.fail_queries = False
        self.scope_calls = 0
        self.changed_since_calls: List[datetime] = []
        self._healthy = True

    # Test helpers

    def add(
        self,
        item_id: int,
        price: Optional[str],
        name: Optional[str] = None,
        category: Optional[str] = "general",
        last_modified: Optional[datetime] = None,
        is_active: bool = True
    ) -> CatalogItem:
        item = CatalogItem(
            id=item_id,
            name=name or f"Item {item_id}",
            category=category,
            current_price=Decimal(price) if price is not None else None,
            last_modified=last_modified or self.clock(),
            revision=1,
            is_active=is_active
        )
        self.items[item_id] = item
        return item

    def set_price(self, item_id: int, price: Optional[str], last_modified: Optional[datetime] = None) -> CatalogItem:
        """Simulate an external write: new price, bumped revision and modification time."""
        item = self.items[item_id]
        item.previous_price = item.current_price
        item.current_price = Decimal(price) if price is not None else None
        item.revision = (item.revision or 0) + 1
        item.last_modified = last_modified or self.clock()
        return item

    @contextmanager
    def scope(self) -> Iterator['FakeCatalogRepository']:
        self.scope_calls += 1
        yield self

    # Repository interface

    def _check(self):
        if self.fail_queries:
            raise ConnectionError("catalog unavailable")

    def find_changed_since(self, since: datetime) -> List[CatalogItem]:
        self._check()
        self.changed_since_calls.append(since)
        changed = [i for i in self.items.values() if i.last_modified >= since]
        return sorted(changed, key=lambda i: (i.last_modified, i.id))

    def find_all_active(self) -> List[CatalogItem]:
        self._check()
        return [i for i in sorted(self.items.values(), key=lambda i: i.id) if i.is_active]

    def get_by_id(self, item_id: int) -> Optional[CatalogItem]:
        self._check()
        return self.items.get(item_id)

    def find_with_price_changes(self) -> List[CatalogItem]:
        self._check()
        return [i for i in self.items.values() if i.has_price_changed]

    def find_active_by_category(self, category: str) -> List[CatalogItem]:
        self._check()
        return [i for i in self.items.values() if i.category == category and i.is_active]

    def count_all(self) -> int:
        self._check()
        return len(self.items)

    def update_price(self, item_id: int, new_price: Optional[Decimal]) -> Optional[CatalogItem]:
        self._check()
        if item_id not in self.items:
            return None
        item = self.items[item_id]
        item.previous_price = item.current_price
        item.current_price = new_price
        item.last_modified = self.clock()
        return item

    def health_check(self) -> bool:
        return self._healthy

# ======================== FAKE BROKERS ========================

class RecordingBroker:
    """Broker that keeps every published event."""

    def __init__(self):
        self.published: List[tuple] = []
        self._healthy = True

    @property
    def events(self) -> List[PriceChangeEvent]:
        return [event for _, event in self.published]

    def publish(self, queue_name: str, event: PriceChangeEvent) -> None:
        self.published.append((queue_name, event))

    def health_check(self) -> bool:
        return self._healthy

class FailingBroker:
    """Broker whose publish always raises."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error or ConnectionError("broker unreachable")
        self.attempts = 0

    def publish(self, queue_name: str, event: PriceChangeEvent) -> None:
        self.attempts += 1
        raise self.error

    def health_check(self) -> bool:
        return False
