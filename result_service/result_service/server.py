"""FastAPI server implementation for the Result Service."""

import threading
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import List, Optional

from divesurf_common.messaging import KafkaMessageBus, check_kafka_connection
from divesurf_common.schemas import AggregatedResult, SizeClass
from fastapi import FastAPI, HTTPException

from .consumer import OrderSinkConsumer, ValidationResultConsumer
from .correlator import ResultCorrelator
from .logger import logger, settings
from .router import SizeRouter


class ResultServiceState:
    """Class to manage result service state."""

    def __init__(self, history_size: int = 1000):
        """Initialize result service state.

        Args:
            history_size: Number of delivered results kept for queries
        """
        self.bus: Optional[KafkaMessageBus] = None
        self.correlator: Optional[ResultCorrelator] = None
        self.consumer_threads: List[threading.Thread] = []
        self.history_size = history_size
        self._results: "OrderedDict[int, AggregatedResult]" = OrderedDict()
        self._lock = threading.Lock()

    def store_result(self, result: AggregatedResult) -> None:
        """Store a delivered result, evicting the oldest beyond the history size.

        Args:
            result: The delivered aggregated result
        """
        with self._lock:
            self._results[result.order_id] = result
            self._results.move_to_end(result.order_id)
            while len(self._results) > self.history_size:
                self._results.popitem(last=False)

    def get_result(self, order_id: int) -> Optional[AggregatedResult]:
        """Get a delivered result by order ID.

        Args:
            order_id: The order ID to look up

        Returns:
            The aggregated result if found, None otherwise
        """
        with self._lock:
            return self._results.get(order_id)

    def list_results(self, size_class: Optional[SizeClass] = None) -> List[AggregatedResult]:
        """Get delivered results, optionally filtered by size class.

        Args:
            size_class: Optional size class to filter by

        Returns:
            List of matching results, oldest first
        """
        with self._lock:
            results = list(self._results.values())
        if size_class:
            return [result for result in results if result.size_class == size_class]
        return results


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the lifecycle of the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    # Startup: wire correlator, router and both consumers
    state.bus = KafkaMessageBus(
        settings.kafka_bootstrap_servers,
        client_id="result-service",
        delivery_timeout=settings.kafka_delivery_timeout_seconds,
    )
    router = SizeRouter(state.bus)
    state.correlator = ResultCorrelator(router.route, timeout=settings.correlation_timeout_seconds)

    results_thread = threading.Thread(
        target=ValidationResultConsumer(state.bus, state.correlator).process_messages,
        daemon=True,
    )
    sinks_thread = threading.Thread(
        target=OrderSinkConsumer(state.bus).process_messages,
        args=(state.store_result,),
        daemon=True,
    )
    state.consumer_threads = [results_thread, sinks_thread]
    results_thread.start()
    sinks_thread.start()
    logger.info(f"Result consumers started | correlation_timeout={settings.correlation_timeout_seconds}s")

    yield

    # Shutdown
    state.correlator.close()
    state.bus.close()


app = FastAPI(title="Result Service", lifespan=lifespan)
state = ResultServiceState(history_size=settings.result_history_size)


@app.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@app.get("/health/ready")
async def readiness_check():
    """Check if the service is ready to handle requests."""
    consumers_alive = all(thread.is_alive() for thread in state.consumer_threads)
    kafka_ok = check_kafka_connection(settings.kafka_bootstrap_servers)
    return {
        "status": "ready" if kafka_ok and consumers_alive else "not ready",
        "kafka": "connected" if kafka_ok else "disconnected",
        "consumers": "running" if consumers_alive else "stopped",
    }


@app.get("/results/{order_id}", response_model=AggregatedResult)
async def get_result(order_id: int):
    """Get the delivered result of an order.

    Raises:
        HTTPException: If no result was delivered for the order
    """
    result = state.get_result(order_id)
    if not result:
        raise HTTPException(status_code=404, detail="Result not found")
    return result


@app.get("/results", response_model=List[AggregatedResult])
async def list_results(size_class: Optional[SizeClass] = None):
    """List delivered results, optionally filtered by size class."""
    return state.list_results(size_class)


@app.get("/correlations/pending")
async def pending_correlations():
    """Number of orders still waiting for their second validation result."""
    return {"pending": state.correlator.pending_count if state.correlator else 0}
