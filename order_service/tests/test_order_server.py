"""Tests for the order service HTTP endpoints."""

from http import HTTPStatus
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from divesurf_common.errors import MessagingError
from divesurf_common.messaging import ORDERS_RAW
from order_service.server import app, state


@pytest.fixture
def test_client():
    """Create a test client; the lifespan (and Kafka) is not started."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def mocked_producer(test_producer):
    state.producer = test_producer
    yield test_producer
    state.producer = None


def test_health_check(test_client):
    response = test_client.get("/health")
    assert response.status_code == HTTPStatus.OK
    assert response.json() == {"status": "healthy"}


@patch("order_service.server.check_kafka_connection", return_value=True)
def test_readiness_check_success(mock_check, test_client):
    response = test_client.get("/health/ready")
    assert response.status_code == HTTPStatus.OK
    assert response.json() == {"status": "ready", "kafka": True}


def test_web_order_is_queued(test_client, mock_bus):
    response = test_client.post("/orders/web", json={"line": "42,Jane,Doe,2,3"})

    assert response.status_code == HTTPStatus.ACCEPTED
    assert response.json() == {"status": "accepted", "channel": "web", "dialect": "web"}
    mock_bus.publish.assert_called_once_with(ORDERS_RAW, "42,Jane,Doe,2,3")


def test_call_center_order_is_queued(test_client, mock_bus):
    response = test_client.post("/orders/call-center", json={"line": "Jane Doe,3,2,C-42"})

    assert response.status_code == HTTPStatus.ACCEPTED
    assert response.json()["dialect"] == "call-center"
    mock_bus.publish.assert_called_once_with(ORDERS_RAW, "Jane Doe,3,2,C-42")


def test_malformed_web_order_is_rejected(test_client, mock_bus):
    response = test_client.post("/orders/web", json={"line": "42,Jane,Doe,2"})

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY
    assert "5" in response.json()["detail"]
    mock_bus.publish.assert_not_called()


def test_wrong_dialect_for_channel_is_rejected(test_client, mock_bus):
    response = test_client.post("/orders/web", json={"line": "Jane Doe,3,2,42"})

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY
    mock_bus.publish.assert_not_called()


def test_broker_failure_returns_service_unavailable(test_client, mock_bus):
    mock_bus.publish = MagicMock(side_effect=MessagingError("broker down", ORDERS_RAW))

    response = test_client.post("/orders/web", json={"line": "42,Jane,Doe,2,3"})

    assert response.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    assert response.json()["detail"] == "broker down"
