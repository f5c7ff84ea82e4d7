"""
API schemas for the price monitoring endpoints.

DTOs are built from domain objects by the ``*_to_dto`` helpers at the
bottom of the module.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict

from pricewatch.core.domain.entities import PriceChangeEvent, CatalogItem, utcnow
from pricewatch.core.enums import PriceChangeType

# ======================== BASE ========================

class BaseSchema(BaseModel):
    """Common configuration for all DTOs."""
    model_config = ConfigDict(
        use_enum_values=True,
        populate_by_name=True,
        extra='forbid'
    )

# ======================== REQUEST MODELS ========================

class PriceUpdateRequest(BaseSchema):
    """New price for a catalog product."""
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="New price")

# ======================== RESPONSE MODELS ========================

class PriceChangeEventDTO(BaseSchema):
    """A price transition for one item."""
    item_id: int
    item_name: str
    category: Optional[str] = None
    old_price: Optional[Decimal] = None
    new_price: Optional[Decimal] = None
    change_amount: Decimal
    change_percentage: float
    change_type: PriceChangeType
    occurred_at: datetime
    reason: str

class MonitoringStatusDTO(BaseSchema):
    enabled: bool = Field(..., description="Whether notifications are published")
    last_poll_time: datetime = Field(..., description="Current scan watermark")
    poll_interval_ms: int
    max_batch_size: int
    cached_items: int = Field(..., description="Snapshots held in the cache")
    cache_hits: int = 0
    cache_misses: int = 0
    notifications_published: int = 0
    notifications_failed: int = Field(0, description="Broker publish failures")

class ControlResponse(BaseSchema):
    """Result of a monitoring control action."""
    success: bool = True
    message: str
    status: MonitoringStatusDTO

class ForceScanResponse(BaseSchema):
    success: bool = True
    cached_items: int
    message: str

class PriceStatisticsDTO(BaseSchema):
    total_items: int
    items_with_price_changes: int
    price_increases: int
    price_decreases: int
    average_price_change_percentage: float
    last_updated: datetime

class MonitoringConfigDTO(BaseSchema):
    poll_interval_ms: int
    max_batch_size: int
    notifications_enabled_by_default: bool
    queue_name: str
    janitor_interval_ms: int
    cache_retention_hours: int
    significant_change_threshold: float

class ProductPriceDTO(BaseSchema):
    """Catalog product with its stored price pair."""
    item_id: int
    name: str
    category: Optional[str] = None
    price: Optional[Decimal] = None
    previous_price: Optional[Decimal] = None
    revision: Optional[int] = None
    is_active: bool = True
    last_modified: Optional[datetime] = None

class ProductListResponse(BaseSchema):
    count: int
    items: List[ProductPriceDTO]
    metadata: Dict[str, Any] = Field(default_factory=dict)

class ThresholdResponse(BaseSchema):
    success: bool = True
    message: str
    threshold: float

class HealthDTO(BaseSchema):
    status: str
    database: bool
    broker: bool
    worker: bool
    monitoring: Optional[MonitoringStatusDTO] = None
    timestamp: datetime = Field(default_factory=utcnow)

class ListResponse(BaseSchema):
    """Change event list with a count."""
    count: int
    items: List[PriceChangeEventDTO]
    metadata: Dict[str, Any] = Field(default_factory=dict)

# ======================== CONVERTERS ========================

def change_event_to_dto(event: PriceChangeEvent) -> PriceChangeEventDTO:
    return PriceChangeEventDTO(
        item_id=event.item_id,
        item_name=event.item_name,
        category=event.category,
        old_price=event.old_price,
        new_price=event.new_price,
        change_amount=event.change_amount,
        change_percentage=event.change_percentage,
        change_type=event.change_type,
        occurred_at=event.occurred_at,
        reason=event.reason
    )

def change_events_to_response(events: List[PriceChangeEvent], **metadata) -> ListResponse:
    return ListResponse(
        count=len(events),
        items=[change_event_to_dto(e) for e in events],
        metadata=metadata
    )

def worker_status_to_dto(data: Dict[str, Any]) -> MonitoringStatusDTO:
    """Status dict from ``MonitoringStatus.to_dict`` as returned by the worker."""
    return MonitoringStatusDTO(**data)

def item_to_price_dto(item: CatalogItem) -> ProductPriceDTO:
    return ProductPriceDTO(
        item_id=item.id,
        name=item.name,
        category=item.category,
        price=item.current_price,
        previous_price=item.previous_price,
        revision=item.revision,
        is_active=item.is_active,
        last_modified=item.last_modified
    )

def items_to_response(items: List[CatalogItem], **metadata) -> ProductListResponse:
    return ProductListResponse(
        count=len(items),
        items=[item_to_price_dto(item) for item in items],
        metadata=metadata
    )

__all__ = [
    'PriceUpdateRequest',
    'PriceChangeEventDTO',
    'MonitoringStatusDTO',
    'ControlResponse',
    'ForceScanResponse',
    'PriceStatisticsDTO',
    'MonitoringConfigDTO',
    'ProductPriceDTO',
    'ProductListResponse',
    'ThresholdResponse',
    'HealthDTO',
    'ListResponse',
    'change_event_to_dto',
    'change_events_to_response',
    'worker_status_to_dto',
    'item_to_price_dto',
    'items_to_response'
]
