"""
Message broker adapter built on kombu.

Publishes change events as JSON to a named queue on whichever transport
the broker URL selects (RabbitMQ via amqp://, Redis via redis://).
"""

from typing import Optional
import logging

from kombu import Connection, Exchange, Queue
from kombu.exceptions import KombuError

from pricewatch.core.config import settings
from pricewatch.core.domain.entities import PriceChangeEvent
from pricewatch.core.exceptions import BrokerPublishError, ConfigurationError

SUPPORTED_SCHEMES = ("amqp://", "amqps://", "pyamqp://", "redis://", "rediss://", "memory://")

class KombuMessageBroker:
    """
    Publisher for price change events.

    A connection is opened per publish and closed afterwards; the engine
    publishes at most ``max_batch_size`` events per cycle.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        publish_timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
        max_retries: Optional[int] = None
    ):
        self.logger = logging.getLogger(__name__)
        self.url = url or settings.broker_url
        if not self.url.startswith(SUPPORTED_SCHEMES):
            raise ConfigurationError("broker.url")
        self.publish_timeout = publish_timeout or settings.monitoring.publish_timeout_seconds
        self.connect_timeout = connect_timeout or settings.broker.connect_timeout
        self.max_retries = settings.broker.max_retries if max_retries is None else max_retries

    def _connection(self) -> Connection:
        return Connection(self.url, connect_timeout=self.connect_timeout)

    def publish(self, queue_name: str, event: PriceChangeEvent) -> None:
        exchange = Exchange(queue_name, type="direct", durable=True)
        queue = Queue(queue_name, exchange=exchange, routing_key=queue_name, durable=True)

        try:
            with self._connection() as conn:
                producer = conn.Producer(serializer="json")
                producer.publish(
                    event.to_dict(),
                    exchange=exchange,
                    routing_key=queue_name,
                    declare=[queue],
                    retry=True,
                    retry_policy={"max_retries": self.max_retries, "interval_start": 0.2},
                    timeout=self.publish_timeout,
                    headers={"event_type": "price_change", "change_type": event.change_type.value}
                )
        except (KombuError, OSError) as e:
            raise BrokerPublishError(queue_name, item_id=event.item_id, cause=e) from e

        self.logger.debug(f"Published change event for item {event.item_id} to {queue_name}")

    def health_check(self) -> bool:
        try:
            with self._connection() as conn:
                conn.ensure_connection(max_retries=1)
            return True
        except Exception as e:
            self.logger.warning(f"Broker health check failed: {e}")
            return False
