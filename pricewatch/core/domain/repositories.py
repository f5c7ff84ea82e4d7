"""
Collaborator Interfaces - Pure Abstractions

Protocol-based contracts for the catalog store and the message broker.
The engine depends only on these; concrete adapters live in
``pricewatch.infrastructure``.
"""

from typing import Protocol, List, Optional, ContextManager, Callable
from datetime import datetime
from decimal import Decimal

from pricewatch.core.domain.entities import CatalogItem, PriceChangeEvent

# ======================== CATALOG STORE ========================

class CatalogRepository(Protocol):
    """Read access to catalog items, plus the manual price controls."""

    def find_changed_since(self, since: datetime) -> List[CatalogItem]:
        """Items with last_modified >= since, ordered by last_modified."""
        ...

    def find_all_active(self) -> List[CatalogItem]:
        """Every active item."""
        ...

    def get_by_id(self, item_id: int) -> Optional[CatalogItem]:
        """Single item or None."""
        ...

    def find_with_price_changes(self) -> List[CatalogItem]:
        """Items whose stored previous price differs from the current one."""
        ...

    def find_active_by_category(self, category: str) -> List[CatalogItem]:
        """Active items in a category."""
        ...

    def count_all(self) -> int:
        """Total number of items."""
        ...

    def update_price(self, item_id: int, new_price: Optional[Decimal]) -> Optional[CatalogItem]:
        """Set a new price, keeping the old one as previous_price."""
        ...

    def health_check(self) -> bool:
        """Check store connectivity."""
        ...

# A callable opening a unit of work that yields a repository
CatalogScope = Callable[[], ContextManager[CatalogRepository]]

# ======================== MESSAGE BROKER ========================

class MessageBroker(Protocol):
    """Transport for change events. May raise on failure."""

    def publish(self, queue_name: str, event: PriceChangeEvent) -> None:
        ...

    def health_check(self) -> bool:
        ...
