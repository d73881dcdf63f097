"""Test fixtures for the order service tests."""

from unittest.mock import MagicMock

import pytest

from order_service.enricher import OrderEnricher, OrderIdCounter
from order_service.producer import OrderProducer


@pytest.fixture
def mock_bus():
    """Create a message bus double recording every publish call."""
    return MagicMock()


@pytest.fixture
def test_producer(mock_bus):
    """Create an order producer publishing on the mocked bus."""
    return OrderProducer(mock_bus)


@pytest.fixture
def test_enricher():
    """Create an enricher with a fresh counter starting at 1."""
    return OrderEnricher(OrderIdCounter())
