"""
Price Change Notifier

Gate between change detection and the message broker. Delivery is
best-effort: a failed publish is logged and the event is dropped.
"""

import logging
import threading
from typing import Dict

from pricewatch.core.domain.entities import PriceChangeEvent
from pricewatch.core.domain.repositories import MessageBroker

class PriceChangeNotifier:
    """
    Enabled toggle plus publish.

    The flag lives only in this process and starts from configuration
    on every restart.
    """

    def __init__(self, broker: MessageBroker, queue_name: str, enabled: bool = True):
        self.logger = logging.getLogger(__name__)
        self.broker = broker
        self.queue_name = queue_name

        self._enabled = threading.Event()
        if enabled:
            self._enabled.set()

        self._counter_lock = threading.Lock()
        self.published_count = 0
        self.failed_count = 0

    def set_enabled(self, enabled: bool) -> None:
        if enabled:
            self._enabled.set()
        else:
            self._enabled.clear()
        self.logger.info(f"Price change notifications {'enabled' if enabled else 'disabled'}")

    def is_enabled(self) -> bool:
        return self._enabled.is_set()

    def publish(self, event: PriceChangeEvent) -> bool:
        """
        Hand an event to the broker.

        Returns:
            True if the broker accepted it, False when disabled or failed
        """
        if not self.is_enabled():
            self.logger.debug(
                f"Notifications disabled, skipping notification for item {event.item_id}"
            )
            return False

        try:
            self.logger.info(
                f"Sending price change notification for item {event.item_id} - "
                f"{event.item_name} from {event.old_price} to {event.new_price}"
            )
            self.broker.publish(self.queue_name, event)
        except Exception as e:
            with self._counter_lock:
                self.failed_count += 1
            self.logger.error(
                f"Failed to send price change notification for item {event.item_id}: {e}",
                extra={"item_id": event.item_id, "queue_name": self.queue_name},
                exc_info=True
            )
            return False

        with self._counter_lock:
            self.published_count += 1
        return True

    def get_stats(self) -> Dict[str, int]:
        with self._counter_lock:
            return {"published": self.published_count, "failed": self.failed_count}
