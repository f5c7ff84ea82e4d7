"""
Domain Entities

Catalog items as seen by the engine, cached price snapshots and the
outbound change event value object.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from pricewatch.core.enums import PriceChangeType, ChangeReason

def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_PERCENT_QUANTUM = Decimal("0.0001")

# ======================== CATALOG ITEM ========================

@dataclass
class CatalogItem:
    """
    An item as returned by the catalog store.

    ``revision`` is the store's optimistic-lock version; the engine only
    copies it into snapshots for diagnostics.
    """
    id: int
    name: str
    category: Optional[str] = None
    current_price: Optional[Decimal] = None
    last_modified: Optional[datetime] = None
    revision: Optional[int] = None
    previous_price: Optional[Decimal] = None
    is_active: bool = True

    @property
    def has_price_changed(self) -> bool:
        """Whether the store recorded a different previous price."""
        if self.previous_price is None or self.current_price is None:
            return False
        return self.previous_price.compare(self.current_price) != 0

    def to_change_event(self, reason: str = ChangeReason.AUTOMATIC.value) -> 'PriceChangeEvent':
        """Project the stored previous/current price pair into an event."""
        return PriceChangeEvent.from_prices(
            item_id=self.id,
            item_name=self.name,
            category=self.category,
            old_price=self.previous_price,
            new_price=self.current_price,
            reason=reason
        )

# ======================== SNAPSHOT ========================

@dataclass(frozen=True)
class PriceSnapshot:
    """Last observed price of an item. Replaced wholesale, never mutated."""
    item_id: int
    price: Optional[Decimal]
    observed_at: datetime
    revision: Optional[int] = None

    @property
    def has_price(self) -> bool:
        return self.price is not None

    @classmethod
    def observe(cls, item: CatalogItem, observed_at: Optional[datetime] = None) -> 'PriceSnapshot':
        return cls(
            item_id=item.id,
            price=item.current_price,
            observed_at=observed_at or utcnow(),
            revision=item.revision
        )

# ======================== CHANGE EVENT ========================

@dataclass(frozen=True)
class PriceChangeEvent:
    """
    Outbound record describing a price transition.

    Build it with ``from_prices`` so the derived amount, percentage and
    type stay consistent with the two prices.
    """
    item_id: int
    item_name: str
    category: Optional[str]
    old_price: Optional[Decimal]
    new_price: Optional[Decimal]
    change_amount: Decimal
    change_percentage: float
    change_type: PriceChangeType
    occurred_at: datetime = field(default_factory=utcnow)
    reason: str = ChangeReason.AUTOMATIC.value

    @classmethod
    def from_prices(
        cls,
        item_id: int,
        item_name: str,
        category: Optional[str],
        old_price: Optional[Decimal],
        new_price: Optional[Decimal],
        reason: str = ChangeReason.AUTOMATIC.value,
        occurred_at: Optional[datetime] = None
    ) -> 'PriceChangeEvent':
        change_amount = _ZERO
        change_percentage = 0.0

        if old_price is not None and new_price is not None:
            change_amount = new_price - old_price
            if old_price > _ZERO:
                ratio = (change_amount / old_price).quantize(_PERCENT_QUANTUM, rounding=ROUND_HALF_UP)
                change_percentage = float(ratio * _HUNDRED)
            change_type = PriceChangeType.INCREASE if change_amount > _ZERO else PriceChangeType.DECREASE
        elif new_price is None and old_price is not None:
            change_type = PriceChangeType.RESET
        else:
            change_type = PriceChangeType.INITIAL

        return cls(
            item_id=item_id,
            item_name=item_name,
            category=category,
            old_price=old_price,
            new_price=new_price,
            change_amount=change_amount,
            change_percentage=change_percentage,
            change_type=change_type,
            occurred_at=occurred_at or utcnow(),
            reason=reason
        )

    @property
    def is_increase(self) -> bool:
        return self.change_type == PriceChangeType.INCREASE

    @property
    def is_decrease(self) -> bool:
        return self.change_type == PriceChangeType.DECREASE

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe payload for the broker."""
        return {
            "item_id": self.item_id,
            "item_name": self.item_name,
            "category": self.category,
            "old_price": str(self.old_price) if self.old_price is not None else None,
            "new_price": str(self.new_price) if self.new_price is not None else None,
            "change_amount": str(self.change_amount),
            "change_percentage": self.change_percentage,
            "change_type": self.change_type.value,
            "occurred_at": self.occurred_at.isoformat(),
            "reason": self.reason
        }
