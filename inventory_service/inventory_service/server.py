"""FastAPI entry point for the Inventory Service."""

import threading
from contextlib import asynccontextmanager
from typing import Optional

from divesurf_common.messaging import KafkaMessageBus, check_kafka_connection
from divesurf_common.schemas import StockLevels
from fastapi import FastAPI, HTTPException

from .consumer import InventoryConsumer
from .ledger import InventoryLedger, JsonFileLedgerStore
from .logger import logger, settings
from .validator import StockValidator


class InventoryState:
    """Components of the running inventory service."""

    def __init__(self):
        self.bus: Optional[KafkaMessageBus] = None
        self.ledger: Optional[InventoryLedger] = None
        self.consumer: Optional[InventoryConsumer] = None


state = InventoryState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    state.ledger = InventoryLedger.open(JsonFileLedgerStore(settings.stock_file))
    state.bus = KafkaMessageBus(
        settings.kafka_bootstrap_servers,
        client_id="inventory-service",
        delivery_timeout=settings.kafka_delivery_timeout_seconds,
    )
    state.consumer = InventoryConsumer(state.bus, StockValidator(state.ledger))
    consumer_thread = threading.Thread(target=state.consumer.process_messages, daemon=True)
    consumer_thread.start()
    logger.info(f"Inventory consumer thread started | stock_file={settings.stock_file}")
    yield
    # Shutdown
    state.bus.close()


app = FastAPI(title="Inventory Service", lifespan=lifespan)


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


@app.get("/stock", response_model=StockLevels)
async def get_stock():
    """Current stock levels of the ledger."""
    if state.ledger is None:
        raise HTTPException(status_code=503, detail="Ledger not loaded")
    return state.ledger.snapshot()
