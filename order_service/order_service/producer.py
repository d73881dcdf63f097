"""Publishing of raw and enriched orders."""

from divesurf_common.messaging import ORDERS_ENRICHED, ORDERS_RAW, MessageBus
from divesurf_common.schemas import EnrichedOrder

from .logger import logger


class OrderProducer:
    """Publishes order events of the order service.

    Raw lines go to the ``orders.raw`` queue, enriched orders are fanned out
    on the ``orders.enriched`` topic keyed by order id so every validator
    subscription receives its own copy.

    Attributes:
        bus: The message bus used for publishing.
    """

    def __init__(self, bus: MessageBus):
        """Initialize the producer.

        Args:
            bus (MessageBus): Bus to publish on.
        """
        self.bus = bus

    def publish_raw_line(self, line: str, source: str) -> None:
        """Queue a raw order line for normalization.

        Args:
            line (str): The raw order line.
            source (str): Ingestion channel the line came from.

        Raises:
            MessagingError: If the broker did not accept the message.
        """
        self.bus.publish(ORDERS_RAW, line.strip())
        logger.info(f"Raw order queued | source={source} | line={line.strip()!r}")

    def publish_order(self, order: EnrichedOrder) -> None:
        """Publish an enriched order to the validation fan-out topic.

        Args:
            order (EnrichedOrder): The order to publish.

        Raises:
            MessagingError: If the broker did not accept the message.
        """
        self.bus.publish(ORDERS_ENRICHED, order, key=str(order.order_id))
        logger.info(f"Enriched order published | order_id={order.order_id} | topic={ORDERS_ENRICHED}")
