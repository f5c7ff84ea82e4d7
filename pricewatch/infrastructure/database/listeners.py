"""
Entity-level price change hook.

A second detection path next to polling: when a product's price is
written through this process's ORM session, publish the change through
the same notifier the scan engine uses.
"""

from typing import Optional
from sqlalchemy import event, inspect
import logging

from pricewatch.core.domain.entities import PriceChangeEvent
from pricewatch.core.enums import ChangeReason
from pricewatch.infrastructure.database.models import Product
from pricewatch.services.monitoring.notifier import PriceChangeNotifier

logger = logging.getLogger(__name__)

_registered_handler = None

def _build_event(target: Product) -> Optional[PriceChangeEvent]:
    history = inspect(target).attrs.price.history
    if not history.has_changes():
        return None

    old_price = history.deleted[0] if history.deleted else None
    new_price = history.added[0] if history.added else None

    if old_price is not None and new_price is not None and old_price == new_price:
        return None

    return PriceChangeEvent.from_prices(
        item_id=target.id,
        item_name=target.name,
        category=target.category,
        old_price=old_price,
        new_price=new_price,
        reason=ChangeReason.CATALOG_WRITE.value
    )

def register_price_change_listener(notifier: PriceChangeNotifier) -> None:
    """Attach the after_update hook. Replaces a previously attached one."""
    global _registered_handler
    unregister_price_change_listener()

    def after_update(mapper, connection, target):
        try:
            change_event = _build_event(target)
        except Exception as e:
            logger.error(f"Could not build price change event for product {target.id}: {e}", exc_info=True)
            return

        if change_event is not None:
            notifier.publish(change_event)

    event.listen(Product, "after_update", after_update)
    _registered_handler = after_update
    logger.info("Product price change listener registered")

def unregister_price_change_listener() -> None:
    global _registered_handler
    if _registered_handler is not None:
        event.remove(Product, "after_update", _registered_handler)
        _registered_handler = None
