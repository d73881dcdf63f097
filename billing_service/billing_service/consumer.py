"""Billing subscription to the enriched order topic."""

from divesurf_common.messaging import ORDERS_ENRICHED, VALIDATION_RESULTS, MessageBus
from divesurf_common.schemas import EnrichedOrder, PartialResult
from pydantic import ValidationError

from .credit import CreditValidator
from .logger import logger

GROUP_ID = "billing-service"


class BillingConsumer:
    """Credit-checks every enriched order and publishes the partial result."""

    def __init__(self, bus: MessageBus, validator: CreditValidator):
        self.bus = bus
        self.validator = validator

    def handle_order(self, order: EnrichedOrder) -> PartialResult:
        """Validate one order and publish its credit result.

        Raises:
            MessagingError: If the result could not be published.
        """
        result = self.validator.validate(order)
        self.bus.publish(VALIDATION_RESULTS, result, key=str(result.order_id))
        return result

    def process_messages(self) -> None:
        """Consume enriched orders until the bus is stopped."""
        logger.info("Starting billing processing loop")
        for envelope in self.bus.subscribe([ORDERS_ENRICHED], GROUP_ID):
            try:
                order = EnrichedOrder.model_validate_json(envelope.value)
            except ValidationError as e:
                logger.error(f"Failed to decode enriched order | key={envelope.key} | error={e}")
                continue
            self.handle_order(order)
