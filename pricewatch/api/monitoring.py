"""
Price Monitoring API Endpoints

Operational controls for the scan engine, read-only change views over
the catalog and manual price controls.

The scan engine runs in the monitoring worker. Controls and status are
request/reply calls to that worker; the change views read the catalog
directly.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, Response, status

from pricewatch.core.config import settings, MonitoringSettings
from pricewatch.core.domain.repositories import CatalogScope, MessageBroker
from pricewatch.core.exceptions import ResourceNotFoundError, ValidationError, WorkerUnavailableError
from pricewatch.core.logging_config import get_logger
from pricewatch.api.dependencies import (
    get_worker,
    get_notifier,
    get_monitoring_config,
    get_analytics,
    get_catalog_scope,
    get_broker
)
from pricewatch.api.schemas import (
    PriceUpdateRequest, ControlResponse, ForceScanResponse, MonitoringStatusDTO,
    PriceChangeEventDTO, PriceStatisticsDTO, MonitoringConfigDTO, ProductPriceDTO,
    ProductListResponse, ThresholdResponse, HealthDTO, ListResponse,
    change_event_to_dto, change_events_to_response, worker_status_to_dto,
    item_to_price_dto, items_to_response
)
from pricewatch.services.monitoring.analytics import PriceAnalyticsService
from pricewatch.services.monitoring.cache_janitor import CACHE_RETENTION_HOURS
from pricewatch.services.monitoring.notifier import PriceChangeNotifier
from pricewatch.services.monitoring.worker_client import MonitoringWorkerClient

logger = get_logger(__name__)

router = APIRouter(
    prefix=f"{settings.api_v1_prefix}/price-monitoring",
    tags=["Price Monitoring"]
)

_CENT = Decimal("0.01")

# ======================== CONTROLS ========================

def _set_notifications(
    enabled: bool,
    worker: MonitoringWorkerClient,
    notifier: PriceChangeNotifier
) -> MonitoringStatusDTO:
    # The local gate serves the entity hook of this process
    notifier.set_enabled(enabled)
    worker.set_notifications_enabled(enabled)
    return worker_status_to_dto(worker.status())

@router.post("/enable", response_model=ControlResponse, summary="Enable price change notifications")
def enable_monitoring(
    worker: MonitoringWorkerClient = Depends(get_worker),
    notifier: PriceChangeNotifier = Depends(get_notifier)
) -> ControlResponse:
    current = _set_notifications(True, worker, notifier)
    return ControlResponse(message="Price monitoring enabled", status=current)

@router.post("/disable", response_model=ControlResponse, summary="Disable price change notifications")
def disable_monitoring(
    worker: MonitoringWorkerClient = Depends(get_worker),
    notifier: PriceChangeNotifier = Depends(get_notifier)
) -> ControlResponse:
    current = _set_notifications(False, worker, notifier)
    return ControlResponse(message="Price monitoring disabled", status=current)

@router.get("/status", response_model=MonitoringStatusDTO, summary="Scan engine status")
def monitoring_status(worker: MonitoringWorkerClient = Depends(get_worker)) -> MonitoringStatusDTO:
    return worker_status_to_dto(worker.status())

@router.post("/force-scan", response_model=ForceScanResponse, summary="Resynchronise the snapshot cache")
def force_scan(worker: MonitoringWorkerClient = Depends(get_worker)) -> ForceScanResponse:
    """
    Overwrite the worker's snapshot cache with every active item.

    No notifications are published; subsequent polls diff against the
    refreshed snapshots.
    """
    cached = worker.force_full_scan()["cached_items"]
    return ForceScanResponse(cached_items=cached, message=f"Full scan cached {cached} items")

# ======================== CHANGE VIEWS ========================

@router.get("/price-changes", response_model=ListResponse, summary="Items with a recorded price change")
def list_price_changes(analytics: PriceAnalyticsService = Depends(get_analytics)) -> ListResponse:
    return change_events_to_response(analytics.recent_changes())

@router.get(
    "/price-changes/{item_id}",
    response_model=PriceChangeEventDTO,
    responses={204: {"description": "Item has no recorded price change"}},
    summary="Price change for one item"
)
def get_price_change(
    item_id: int = Path(..., gt=0, description="Catalog item ID"),
    analytics: PriceAnalyticsService = Depends(get_analytics)
):
    event = analytics.item_change(item_id)
    if event is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return change_event_to_dto(event)

@router.get("/offers", response_model=ListResponse, summary="Price decreases")
def list_offers(analytics: PriceAnalyticsService = Depends(get_analytics)) -> ListResponse:
    return change_events_to_response(analytics.offers())

@router.get("/offers/category/{category}", response_model=ListResponse, summary="Price decreases in a category")
def list_category_offers(
    category: str = Path(..., min_length=1),
    analytics: PriceAnalyticsService = Depends(get_analytics)
) -> ListResponse:
    return change_events_to_response(analytics.offers(category), category=category)

# ======================== ALERTS ========================

@router.get("/alerts/price-increases", response_model=ListResponse, summary="Price increases")
def price_increase_alerts(analytics: PriceAnalyticsService = Depends(get_analytics)) -> ListResponse:
    return change_events_to_response(analytics.price_increases())

@router.get("/alerts/significant-changes", response_model=ListResponse, summary="Large price changes")
def significant_change_alerts(
    threshold: Optional[float] = Query(None, description="Minimum absolute change percentage"),
    analytics: PriceAnalyticsService = Depends(get_analytics)
) -> ListResponse:
    if threshold is None:
        threshold = analytics.significant_change_threshold
    return change_events_to_response(analytics.significant_changes(threshold), threshold=threshold)

# ======================== INFO ========================

@router.get("/statistics", response_model=PriceStatisticsDTO, summary="Aggregate price change statistics")
def price_statistics(analytics: PriceAnalyticsService = Depends(get_analytics)) -> PriceStatisticsDTO:
    return PriceStatisticsDTO(**analytics.statistics())

@router.get("/config", response_model=MonitoringConfigDTO, summary="Monitoring configuration")
def monitoring_config(
    config: MonitoringSettings = Depends(get_monitoring_config),
    analytics: PriceAnalyticsService = Depends(get_analytics)
) -> MonitoringConfigDTO:
    return MonitoringConfigDTO(
        poll_interval_ms=config.poll_interval_ms,
        max_batch_size=config.max_batch_size,
        notifications_enabled_by_default=config.notifications_enabled,
        queue_name=config.queue_name,
        janitor_interval_ms=config.janitor_interval_ms,
        cache_retention_hours=CACHE_RETENTION_HOURS,
        significant_change_threshold=analytics.significant_change_threshold
    )

@router.post(
    "/config/notification-threshold",
    response_model=ThresholdResponse,
    summary="Set the default significant change threshold"
)
def set_notification_threshold(
    threshold: float = Query(..., description="Absolute change percentage"),
    analytics: PriceAnalyticsService = Depends(get_analytics)
) -> ThresholdResponse:
    updated = analytics.set_significant_change_threshold(threshold)
    return ThresholdResponse(message="Notification threshold updated", threshold=updated)

@router.get("/health", response_model=HealthDTO, summary="Monitoring health")
def monitoring_health(
    worker: MonitoringWorkerClient = Depends(get_worker),
    catalog_scope: CatalogScope = Depends(get_catalog_scope),
    broker: MessageBroker = Depends(get_broker)
) -> HealthDTO:
    try:
        with catalog_scope() as catalog:
            database_ok = catalog.health_check()
    except Exception as e:
        logger.warning(f"Catalog unavailable during health check: {e}")
        database_ok = False

    broker_ok = broker.health_check()

    try:
        monitoring = worker_status_to_dto(worker.status())
    except WorkerUnavailableError:
        monitoring = None

    healthy = database_ok and broker_ok and monitoring is not None
    return HealthDTO(
        status="healthy" if healthy else "degraded",
        database=database_ok,
        broker=broker_ok,
        worker=monitoring is not None,
        monitoring=monitoring
    )

# ======================== PRODUCTS ========================

@router.get("/products/active", response_model=ProductListResponse, summary="Active products")
def list_active_products(catalog_scope: CatalogScope = Depends(get_catalog_scope)) -> ProductListResponse:
    with catalog_scope() as catalog:
        items = catalog.find_all_active()
    return items_to_response(items)

@router.get(
    "/products/with-price-changes",
    response_model=ProductListResponse,
    summary="Products whose stored previous price differs"
)
def list_products_with_price_changes(
    catalog_scope: CatalogScope = Depends(get_catalog_scope)
) -> ProductListResponse:
    with catalog_scope() as catalog:
        items = [item for item in catalog.find_with_price_changes() if item.has_price_changed]
    return items_to_response(items)

@router.get("/products/category/{category}", response_model=ProductListResponse, summary="Active products in a category")
def list_category_products(
    category: str = Path(..., min_length=1),
    catalog_scope: CatalogScope = Depends(get_catalog_scope)
) -> ProductListResponse:
    with catalog_scope() as catalog:
        items = catalog.find_active_by_category(category)
    return items_to_response(items, category=category)

@router.get("/products/{item_id}", response_model=ProductPriceDTO, summary="One product")
def get_product(
    item_id: int = Path(..., gt=0),
    catalog_scope: CatalogScope = Depends(get_catalog_scope)
) -> ProductPriceDTO:
    with catalog_scope() as catalog:
        item = catalog.get_by_id(item_id)

    if item is None:
        raise ResourceNotFoundError("Item", item_id)
    return item_to_price_dto(item)

# ======================== PRICE CONTROLS ========================

@router.put("/products/{item_id}/price", response_model=ProductPriceDTO, summary="Set a product price")
def update_product_price(
    request: PriceUpdateRequest,
    item_id: int = Path(..., gt=0),
    catalog_scope: CatalogScope = Depends(get_catalog_scope)
) -> ProductPriceDTO:
    with catalog_scope() as catalog:
        item = catalog.update_price(item_id, request.price)

    if item is None:
        raise ResourceNotFoundError("Item", item_id)
    return item_to_price_dto(item)

@router.post(
    "/products/{item_id}/price-adjustment",
    response_model=ProductPriceDTO,
    summary="Adjust a product price by a percentage"
)
def adjust_product_price(
    item_id: int = Path(..., gt=0),
    percentage: float = Query(..., gt=-100, description="Signed percentage, e.g. -10 for a 10% cut"),
    catalog_scope: CatalogScope = Depends(get_catalog_scope)
) -> ProductPriceDTO:
    with catalog_scope() as catalog:
        current = catalog.get_by_id(item_id)
        if current is None:
            raise ResourceNotFoundError("Item", item_id)
        if current.current_price is None:
            raise ValidationError("Item has no price to adjust", field="price", value=None)

        factor = Decimal("1") + Decimal(str(percentage)) / Decimal("100")
        new_price = (current.current_price * factor).quantize(_CENT, rounding=ROUND_HALF_UP)

        logger.info(f"Adjusting price of item {item_id} by {percentage}%: {current.current_price} -> {new_price}")
        item = catalog.update_price(item_id, new_price)

    return item_to_price_dto(item)
