"""Order Service Server."""

import threading
from contextlib import asynccontextmanager
from typing import Optional

from divesurf_common.errors import MalformedInputError, MessagingError
from divesurf_common.messaging import KafkaMessageBus, check_kafka_connection
from divesurf_common.schemas import IngestionReceipt, RawOrderLine
from fastapi import APIRouter, FastAPI, HTTPException

from .consumer import RawOrderConsumer
from .enricher import JsonFileCounterStore, OrderEnricher, OrderIdCounter
from .logger import logger, settings
from .normalizer import classify_line, to_normalized
from .producer import OrderProducer


class OrderServiceState:
    """Components of the running order service."""

    def __init__(self):
        self.bus: Optional[KafkaMessageBus] = None
        self.producer: Optional[OrderProducer] = None
        self.consumer: Optional[RawOrderConsumer] = None
        self.counter = OrderIdCounter()


state = OrderServiceState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the raw order worker and close the bus on shutdown."""
    state.bus = KafkaMessageBus(
        settings.kafka_bootstrap_servers,
        client_id="order-service",
        delivery_timeout=settings.kafka_delivery_timeout_seconds,
    )
    state.counter = OrderIdCounter(store=JsonFileCounterStore(settings.order_id_file))
    state.producer = OrderProducer(state.bus)
    state.consumer = RawOrderConsumer(state.bus, OrderEnricher(state.counter), state.producer)

    consumer_thread = threading.Thread(target=state.consumer.process_messages, daemon=True)
    consumer_thread.start()
    logger.info("Raw order consumer thread started")

    yield

    state.bus.close()


app = FastAPI(title="Order Service", lifespan=lifespan)
router = APIRouter()


@router.get("/health")
def health_check():
    """Check the health status of the service."""
    return {"status": "healthy"}


@router.get("/health/ready")
def readiness_check():
    """Check if the service is ready to accept traffic.

    Returns:
        dict: Service readiness status and Kafka connection status.
    """
    kafka_ok = check_kafka_connection(settings.kafka_bootstrap_servers)
    return {"status": "ready" if kafka_ok else "not_ready", "kafka": kafka_ok}


def _accept_line(body: RawOrderLine, expected_dialect: str) -> IngestionReceipt:
    try:
        raw = classify_line(body.line)
        if raw.dialect != expected_dialect:
            raise MalformedInputError(f"Expected a {expected_dialect} order, got a {raw.dialect} order", body.line)
        to_normalized(raw, body.line)
    except MalformedInputError as e:
        logger.warning(f"Rejected {expected_dialect} order: {e}")
        raise HTTPException(status_code=422, detail=e.message)

    if state.producer is None:
        raise HTTPException(status_code=503, detail="Order producer not started")
    try:
        state.producer.publish_raw_line(body.line, source=expected_dialect)
    except MessagingError as e:
        logger.error(f"Failed to queue {expected_dialect} order: {e}")
        raise HTTPException(status_code=503, detail=e.message)

    return IngestionReceipt(channel=expected_dialect, dialect=raw.dialect)


@router.post("/orders/web", response_model=IngestionReceipt, status_code=202)
def create_web_order(body: RawOrderLine):
    """Accept a web order line: customerId,firstName,lastName,divingSuits,surfboards."""
    return _accept_line(body, "web")


@router.post("/orders/call-center", response_model=IngestionReceipt, status_code=202)
def create_call_center_order(body: RawOrderLine):
    """Accept a call-center order line: Full Name,surfboards,divingSuits,customerId."""
    return _accept_line(body, "call-center")


app.include_router(router)
logger.info("API router mounted.")
