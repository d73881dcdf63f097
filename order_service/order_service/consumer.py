"""Worker turning queued raw order lines into enriched orders."""

from divesurf_common.errors import MalformedInputError
from divesurf_common.messaging import ORDERS_RAW, MessageBus
from divesurf_common.schemas import EnrichedOrder

from .enricher import OrderEnricher
from .logger import logger
from .normalizer import normalize_order
from .producer import OrderProducer

GROUP_ID = "order-service"


class RawOrderConsumer:
    """Consumes ``orders.raw``, normalizes, enriches and publishes each order."""

    def __init__(self, bus: MessageBus, enricher: OrderEnricher, producer: OrderProducer):
        self.bus = bus
        self.enricher = enricher
        self.producer = producer

    def handle_line(self, line: str) -> EnrichedOrder:
        """Process one raw line.

        Raises:
            MalformedInputError: If the line cannot be normalized.
            PersistenceError: If the next order id could not be persisted.
            MessagingError: If the enriched order could not be published.
        """
        order = normalize_order(line)
        enriched = self.enricher.enrich(order)
        self.producer.publish_order(enriched)
        return enriched

    def process_messages(self) -> None:
        """Consume raw lines until the bus is stopped.

        Malformed lines are reported and dropped; messaging and persistence
        failures end the loop with an exception.
        """
        logger.info("Starting raw order processing loop")
        for envelope in self.bus.subscribe([ORDERS_RAW], GROUP_ID):
            try:
                self.handle_line(envelope.value)
            except MalformedInputError as e:
                logger.error(f"Dropping malformed order: {e}")
