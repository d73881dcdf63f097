"""Inventory ledger: the authoritative record of remaining stock.

All reads and writes go through InventoryLedger, which serializes them on a
single lock. A reservation checks, persists and only then applies the new
levels, so the in-memory state never runs ahead of the durable copy.

The ledger also remembers which orders already took their stock. A
redelivered order is granted again without touching the levels.
"""

import threading
from pathlib import Path
from typing import NamedTuple, Optional, Protocol, Tuple

from divesurf_common.errors import LedgerPersistenceError
from divesurf_common.schemas import StockLevels
from divesurf_common.storage import read_json, write_json_atomic
from pydantic import ValidationError

from .logger import logger

DEFAULT_STOCK = StockLevels(surfboards=100, diving_suits=50)
RESERVED_HISTORY = 1000


class LedgerState(NamedTuple):
    """Stock levels plus the ids of the latest orders that took stock."""

    levels: StockLevels
    reserved_orders: Tuple[int, ...] = ()


class LedgerStore(Protocol):
    """Durable storage for the ledger state."""

    def load(self) -> Optional[LedgerState]:
        """Return the stored state, or None if nothing was stored yet."""
        ...

    def save(self, state: LedgerState) -> None:
        """Overwrite the stored state; raise LedgerPersistenceError on failure."""
        ...


class JsonFileLedgerStore:
    """Keeps the ledger state in a small JSON document on disk."""

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> Optional[LedgerState]:
        try:
            data = read_json(self.path)
            if data is None:
                return None
            levels = StockLevels(surfboards=data["surfboards"], diving_suits=data["divingSuits"])
            reserved = tuple(data.get("reservedOrders", ()))
            if not all(isinstance(order_id, int) and not isinstance(order_id, bool) for order_id in reserved):
                raise ValueError("reservedOrders must hold order ids")
            return LedgerState(levels, reserved)
        except (OSError, ValueError, KeyError, TypeError, AttributeError, ValidationError) as e:
            raise LedgerPersistenceError(f"Unreadable stock file: {e}", str(self.path)) from e

    def save(self, state: LedgerState) -> None:
        document = {
            "surfboards": state.levels.surfboards,
            "divingSuits": state.levels.diving_suits,
            "reservedOrders": list(state.reserved_orders),
        }
        try:
            write_json_atomic(self.path, document)
        except OSError as e:
            raise LedgerPersistenceError(f"Failed to write stock file: {e}", str(self.path)) from e


class InventoryLedger:
    """Thread-safe stock counts backed by a LedgerStore."""

    def __init__(
        self,
        store: LedgerStore,
        levels: StockLevels,
        reserved_orders: Tuple[int, ...] = (),
        reserved_history: int = RESERVED_HISTORY,
    ):
        self._store = store
        self._levels = levels
        self._reserved = tuple(reserved_orders)[-reserved_history:]
        self._reserved_history = reserved_history
        self._lock = threading.Lock()

    @classmethod
    def open(cls, store: LedgerStore, default: StockLevels = DEFAULT_STOCK) -> "InventoryLedger":
        """Load the ledger from its store, writing ``default`` on first run.

        Raises:
            LedgerPersistenceError: If the store cannot be read or initialized.
        """
        state = store.load()
        if state is None:
            logger.info(
                f"No stored stock found, initializing | surfboards={default.surfboards} | "
                f"diving_suits={default.diving_suits}"
            )
            state = LedgerState(default)
            store.save(state)
        levels = state.levels
        logger.info(f"Initial stock - Diving Suits: {levels.diving_suits}, Surfboards: {levels.surfboards}")
        return cls(store, levels, state.reserved_orders)

    def snapshot(self) -> StockLevels:
        """Return the current levels."""
        with self._lock:
            return self._levels

    def try_reserve(
        self, surfboards: int, diving_suits: int, order_id: Optional[int] = None
    ) -> Tuple[bool, StockLevels]:
        """Atomically check and take stock for one order.

        The check, the durable write and the in-memory update happen under
        one lock; competing reservations never see an intermediate state.

        Args:
            surfboards: Surfboards requested.
            diving_suits: Diving suits requested.
            order_id: Id of the requesting order. An order that already took
                its stock is granted again without a second decrement.

        Returns:
            (granted, levels): whether the stock was taken, and the levels
            after the call (unchanged when not granted).

        Raises:
            ValueError: If a requested quantity is negative.
            LedgerPersistenceError: If the new levels could not be persisted;
                the in-memory levels are then left unchanged.
        """
        if surfboards < 0 or diving_suits < 0:
            raise ValueError("Requested quantities must not be negative")

        with self._lock:
            current = self._levels
            if order_id is not None and order_id in self._reserved:
                logger.warning(f"Order {order_id} already holds its stock, not reserved twice")
                return True, current
            if surfboards > current.surfboards or diving_suits > current.diving_suits:
                return False, current

            updated = StockLevels(
                surfboards=current.surfboards - surfboards,
                diving_suits=current.diving_suits - diving_suits,
            )
            reserved = self._reserved
            if order_id is not None:
                reserved = (reserved + (order_id,))[-self._reserved_history:]
            self._store.save(LedgerState(updated, reserved))
            self._levels = updated
            self._reserved = reserved
            return True, updated
