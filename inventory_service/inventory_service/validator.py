"""Stock validation of enriched orders against the inventory ledger."""

from divesurf_common.errors import LedgerPersistenceError
from divesurf_common.schemas import EnrichedOrder, PartialResult, ValidationSource

from .ledger import InventoryLedger
from .logger import logger

STOCK_OK = "Stock sufficient"
STOCK_INSUFFICIENT = "Insufficient stock"
LEDGER_UNAVAILABLE = "Stock ledger unavailable"


class StockValidator:
    """Reserves stock for each order it approves."""

    def __init__(self, ledger: InventoryLedger):
        self.ledger = ledger

    def validate(self, order: EnrichedOrder) -> PartialResult:
        """Check and take stock for an order, returning the stock PartialResult.

        A failed ledger write rejects the order and leaves stock untouched.
        """
        try:
            granted, levels = self.ledger.try_reserve(order.surfboards, order.diving_suits, order.order_id)
            detail = STOCK_OK if granted else STOCK_INSUFFICIENT
        except LedgerPersistenceError as e:
            logger.error(f"Rejecting order {order.order_id}, ledger write failed: {e}")
            granted, levels, detail = False, self.ledger.snapshot(), LEDGER_UNAVAILABLE

        logger.info(
            f"Inventory validation: {order.order_id} - {'IN STOCK' if granted else 'REJECTED'} | "
            f"Suits: {levels.diving_suits} | Surfboards: {levels.surfboards} | CurrentTotalStock: {levels.total}"
        )
        return PartialResult(
            order_id=order.order_id,
            source=ValidationSource.STOCK,
            valid=granted,
            detail=detail,
            order=order,
            stock_after=levels,
        )
