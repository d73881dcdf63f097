"""Tests for the billing consumer and HTTP endpoints."""

from http import HTTPStatus
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from billing_service.consumer import GROUP_ID, BillingConsumer
from billing_service.credit import CreditValidator
from billing_service.server import app
from divesurf_common.messaging import ORDERS_ENRICHED, VALIDATION_RESULTS, Envelope
from divesurf_common.schemas import EnrichedOrder


@pytest.fixture
def test_client():
    return TestClient(app)


@pytest.fixture
def mock_bus():
    return MagicMock()


@pytest.fixture
def valid_order():
    return EnrichedOrder(
        order_id=3,
        customer_id="42",
        first_name="Jane",
        last_name="Doe",
        diving_suits=2,
        surfboards=3,
        overall_items=5,
    )


def test_health_check(test_client):
    response = test_client.get("/health")
    assert response.status_code == HTTPStatus.OK
    assert response.json() == {"status": "healthy"}


@patch("billing_service.server.check_kafka_connection", return_value=False)
def test_readiness_check_without_kafka(mock_check, test_client):
    response = test_client.get("/health/ready")
    assert response.json() == {"status": "not ready", "kafka": "disconnected"}


def test_credit_endpoint(test_client):
    response = test_client.get("/credit/42")
    assert response.json() == {"customer_id": "42", "credit_score": 7, "approved": True}


def test_consumer_publishes_credit_result(mock_bus, valid_order):
    mock_bus.subscribe.return_value = iter(
        [Envelope(channel=ORDERS_ENRICHED, key="3", value=valid_order.model_dump_json())]
    )

    BillingConsumer(mock_bus, CreditValidator()).process_messages()

    mock_bus.subscribe.assert_called_once_with([ORDERS_ENRICHED], GROUP_ID)
    channel, result = mock_bus.publish.call_args[0]
    assert channel == VALIDATION_RESULTS
    assert mock_bus.publish.call_args[1] == {"key": "3"}
    assert result.order_id == 3
    assert result.credit_score == 7
    assert result.valid is True


def test_consumer_skips_undecodable_messages(mock_bus, valid_order):
    mock_bus.subscribe.return_value = iter(
        [
            Envelope(channel=ORDERS_ENRICHED, key=None, value="{not json"),
            Envelope(channel=ORDERS_ENRICHED, key=None, value='{"order_id": 1}'),
            Envelope(channel=ORDERS_ENRICHED, key="3", value=valid_order.model_dump_json()),
        ]
    )

    BillingConsumer(mock_bus, CreditValidator()).process_messages()

    assert mock_bus.publish.call_count == 1
