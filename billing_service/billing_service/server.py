"""FastAPI entry point for the Billing Service."""

import threading
from contextlib import asynccontextmanager
from typing import Optional

from divesurf_common.messaging import KafkaMessageBus, check_kafka_connection
from fastapi import FastAPI

from .consumer import BillingConsumer
from .credit import CreditValidator, credit_score
from .logger import logger, settings


class BillingState:
    """Components of the running billing service."""

    def __init__(self):
        self.bus: Optional[KafkaMessageBus] = None
        self.consumer: Optional[BillingConsumer] = None
        self.validator = CreditValidator()


state = BillingState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the billing consumer in a background thread."""
    state.bus = KafkaMessageBus(
        settings.kafka_bootstrap_servers,
        client_id="billing-service",
        delivery_timeout=settings.kafka_delivery_timeout_seconds,
    )
    state.consumer = BillingConsumer(state.bus, state.validator)
    consumer_thread = threading.Thread(target=state.consumer.process_messages, daemon=True)
    consumer_thread.start()
    logger.info("Billing consumer thread started")
    yield
    state.bus.close()


app = FastAPI(title="Billing Service", lifespan=lifespan)


@app.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@app.get("/health/ready")
async def readiness_check():
    """Readiness check that verifies Kafka connection."""
    if check_kafka_connection(settings.kafka_bootstrap_servers):
        return {"status": "ready", "kafka": "connected"}
    return {"status": "not ready", "kafka": "disconnected"}


@app.get("/credit/{customer_id}")
async def get_credit_score(customer_id: str):
    """Show the credit score and decision for a customer id."""
    score = credit_score(customer_id)
    return {"customer_id": customer_id, "credit_score": score, "approved": score >= state.validator.min_score}
