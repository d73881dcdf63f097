"""Content enricher assigning order ids and item totals."""

import threading
from pathlib import Path
from typing import Optional, Protocol

from divesurf_common.errors import PersistenceError
from divesurf_common.schemas import EnrichedOrder, NormalizedOrder
from divesurf_common.storage import read_json, write_json_atomic

from .logger import logger


class CounterStore(Protocol):
    def load(self) -> Optional[int]:
        ...

    def save(self, next_id: int) -> None:
        ...


class JsonFileCounterStore:
    """Keeps the next unused order id in a JSON document on disk."""

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> Optional[int]:
        try:
            data = read_json(self.path)
            if data is None:
                return None
            next_id = data["nextOrderId"]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"Unreadable order id file: {e}", str(self.path)) from e
        if not isinstance(next_id, int) or isinstance(next_id, bool) or next_id < 1:
            raise PersistenceError(f"Invalid next order id: {next_id!r}", str(self.path))
        return next_id

    def save(self, next_id: int) -> None:
        try:
            write_json_atomic(self.path, {"nextOrderId": next_id})
        except OSError as e:
            raise PersistenceError(f"Failed to write order id file: {e}", str(self.path)) from e


class OrderIdCounter:
    """Process-wide source of order identifiers.

    Ids start at ``start`` and grow by one per call. With a ``store`` the
    next unused id is persisted before an id is handed out, so a restarted
    service continues where it stopped; without one it starts over.
    """

    def __init__(self, start: int = 1, store: Optional[CounterStore] = None):
        if start < 1:
            raise ValueError("Order ids start at 1 or above")
        self._store = store
        stored = store.load() if store is not None else None
        self._next = max(start, stored) if stored is not None else start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        """Return the next unused order id.

        Raises:
            PersistenceError: If the store could not record the new position;
                no id is handed out then.
        """
        with self._lock:
            order_id = self._next
            if self._store is not None:
                self._store.save(order_id + 1)
            self._next = order_id + 1
        return order_id

    def peek(self) -> int:
        """Return the id the next call to next_id() will hand out."""
        with self._lock:
            return self._next


class OrderEnricher:
    """Adds the order id and overall item count to normalized orders."""

    def __init__(self, counter: OrderIdCounter):
        self._counter = counter

    def enrich(self, order: NormalizedOrder) -> EnrichedOrder:
        """Assign an order id and compute overall items.

        Args:
            order: The normalized order.

        Returns:
            EnrichedOrder: The order with ``order_id`` and ``overall_items``.
        """
        enriched = EnrichedOrder(
            **order.model_dump(),
            order_id=self._counter.next_id(),
            overall_items=order.diving_suits + order.surfboards,
        )
        logger.info(
            f"Enriched order | order_id={enriched.order_id} | customer_id={enriched.customer_id} | "
            f"overall_items={enriched.overall_items}"
        )
        return enriched
