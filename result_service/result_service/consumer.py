"""Kafka consumers of the result service."""

from typing import Callable

from divesurf_common.messaging import ORDERS_LARGE, ORDERS_SMALL, VALIDATION_RESULTS, MessageBus
from divesurf_common.schemas import AggregatedResult, PartialResult
from pydantic import ValidationError

from .correlator import ResultCorrelator
from .logger import logger
from .report import format_report

RESULTS_GROUP_ID = "result-service"
SINKS_GROUP_ID = "result-sinks"


class ValidationResultConsumer:
    """Feeds partial results from both validators into the correlator."""

    def __init__(self, bus: MessageBus, correlator: ResultCorrelator):
        """Initialize the consumer.

        Args:
            bus: Message bus to consume from
            correlator: Aggregator joining the results by order id
        """
        self.bus = bus
        self.correlator = correlator

    def process_messages(self) -> None:
        """Consume partial results until the bus is stopped.

        Undecodable messages are logged and skipped; broker and sink failures
        propagate.
        """
        logger.info("Starting validation result processing loop")
        for envelope in self.bus.subscribe([VALIDATION_RESULTS], RESULTS_GROUP_ID):
            try:
                partial = PartialResult.model_validate_json(envelope.value)
            except ValidationError as e:
                logger.error(f"Failed to decode partial result | key={envelope.key} | error={e}")
                continue
            logger.debug(f"Received {partial.source.value} result for order {partial.order_id}")
            self.correlator.offer(partial)


class OrderSinkConsumer:
    """Consumes the large and small order sinks and reports each delivery."""

    def __init__(self, bus: MessageBus):
        self.bus = bus

    def process_messages(self, handler: Callable[[AggregatedResult], None]) -> None:
        """Report every routed order and hand it to ``handler``.

        Args:
            handler: Callback receiving each delivered AggregatedResult
        """
        logger.info("Starting order sink processing loop")
        for envelope in self.bus.subscribe([ORDERS_LARGE, ORDERS_SMALL], SINKS_GROUP_ID):
            try:
                result = AggregatedResult.model_validate_json(envelope.value)
            except ValidationError as e:
                logger.error(f"Failed to decode aggregated order | topic={envelope.channel} | error={e}")
                continue
            logger.info("\n" + format_report(result))
            handler(result)
