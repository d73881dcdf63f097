"""Test fixtures for the inventory service tests."""

from typing import Optional

import pytest

from divesurf_common.errors import LedgerPersistenceError
from divesurf_common.schemas import EnrichedOrder, StockLevels
from inventory_service.ledger import InventoryLedger, LedgerState


class MemoryLedgerStore:
    """Ledger store keeping its state in memory, optionally failing writes."""

    def __init__(self, levels: Optional[StockLevels] = None, fail_writes: bool = False):
        self.levels = levels
        self.reserved_orders = ()
        self.fail_writes = fail_writes
        self.saves = []

    def load(self) -> Optional[LedgerState]:
        if self.levels is None:
            return None
        return LedgerState(self.levels, self.reserved_orders)

    def save(self, state: LedgerState) -> None:
        if self.fail_writes:
            raise LedgerPersistenceError("disk full", "memory")
        self.saves.append(state.levels)
        self.levels = state.levels
        self.reserved_orders = state.reserved_orders


@pytest.fixture
def memory_store():
    return MemoryLedgerStore()


@pytest.fixture
def ledger(memory_store):
    """Ledger opened on an empty store, so it starts at the default levels."""
    return InventoryLedger.open(memory_store)


def make_order(order_id: int = 1, surfboards: int = 3, diving_suits: int = 2) -> EnrichedOrder:
    return EnrichedOrder(
        order_id=order_id,
        customer_id="42",
        first_name="Jane",
        last_name="Doe",
        diving_suits=diving_suits,
        surfboards=surfboards,
        overall_items=diving_suits + surfboards,
    )


@pytest.fixture
def order_factory():
    return make_order


@pytest.fixture
def make_store():
    """Factory for in-memory ledger stores with preset levels."""
    return MemoryLedgerStore
