"""Tests for stock validation of enriched orders."""

from divesurf_common.schemas import StockLevels, ValidationSource
from inventory_service.ledger import InventoryLedger
from inventory_service.validator import LEDGER_UNAVAILABLE, STOCK_INSUFFICIENT, STOCK_OK, StockValidator


def test_order_in_stock_is_approved(ledger, order_factory):
    result = StockValidator(ledger).validate(order_factory(order_id=1, surfboards=3, diving_suits=2))

    assert result.source is ValidationSource.STOCK
    assert result.valid is True
    assert result.detail == STOCK_OK
    assert result.stock_after == StockLevels(surfboards=97, diving_suits=48)
    assert result.credit_score is None


def test_order_out_of_stock_is_rejected(make_store, order_factory):
    store = make_store(StockLevels(surfboards=2, diving_suits=0))
    ledger = InventoryLedger.open(store)

    result = StockValidator(ledger).validate(order_factory(surfboards=3, diving_suits=0))

    assert result.valid is False
    assert result.detail == STOCK_INSUFFICIENT
    assert result.stock_after == StockLevels(surfboards=2, diving_suits=0)
    assert ledger.snapshot() == StockLevels(surfboards=2, diving_suits=0)


def test_missing_diving_suits_reject_the_whole_order(make_store, order_factory):
    ledger = InventoryLedger.open(make_store(StockLevels(surfboards=10, diving_suits=1)))

    result = StockValidator(ledger).validate(order_factory(surfboards=1, diving_suits=2))

    assert result.valid is False
    assert ledger.snapshot() == StockLevels(surfboards=10, diving_suits=1)


def test_ledger_write_failure_rejects_the_order(make_store, order_factory):
    store = make_store(StockLevels(surfboards=10, diving_suits=10))
    ledger = InventoryLedger.open(store)
    store.fail_writes = True

    result = StockValidator(ledger).validate(order_factory(surfboards=1, diving_suits=1))

    assert result.valid is False
    assert result.detail == LEDGER_UNAVAILABLE
    assert result.stock_after == StockLevels(surfboards=10, diving_suits=10)


def test_redelivered_order_takes_stock_once(ledger, order_factory):
    validator = StockValidator(ledger)
    order = order_factory(order_id=5, surfboards=3, diving_suits=2)

    first = validator.validate(order)
    second = validator.validate(order)

    assert first.valid is True
    assert second.valid is True
    assert second.stock_after == first.stock_after
    assert ledger.snapshot() == StockLevels(surfboards=97, diving_suits=48)
