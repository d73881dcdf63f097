"""Unit tests for the OrderProducer class."""

from unittest.mock import MagicMock

import pytest

from divesurf_common.errors import MessagingError
from divesurf_common.messaging import ORDERS_ENRICHED, ORDERS_RAW
from divesurf_common.schemas import EnrichedOrder


@pytest.fixture
def test_order():
    return EnrichedOrder(
        order_id=7,
        customer_id="42",
        first_name="Jane",
        last_name="Doe",
        diving_suits=2,
        surfboards=3,
        overall_items=5,
    )


def test_publish_order_uses_fan_out_topic(test_producer, mock_bus, test_order):
    """Enriched orders go to the fan-out topic keyed by order id."""
    test_producer.publish_order(test_order)

    mock_bus.publish.assert_called_once_with(ORDERS_ENRICHED, test_order, key="7")


def test_publish_raw_line_strips_and_queues(test_producer, mock_bus):
    test_producer.publish_raw_line("42,Jane,Doe,2,3\n", source="web")

    mock_bus.publish.assert_called_once_with(ORDERS_RAW, "42,Jane,Doe,2,3")


def test_publish_failure_propagates(test_producer, mock_bus, test_order):
    mock_bus.publish = MagicMock(side_effect=MessagingError("broker down", ORDERS_ENRICHED))

    with pytest.raises(MessagingError):
        test_producer.publish_order(test_order)
