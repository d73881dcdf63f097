"""Test fixtures for the result service tests."""

from typing import Optional

import pytest

from divesurf_common.schemas import EnrichedOrder, PartialResult, StockLevels, ValidationSource


class FakeTimer:
    """Timer double; the test decides when the deadline fires."""

    def __init__(self, interval, function, args=()):
        self.interval = interval
        self.function = function
        self.args = args
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        """Run the callback even if cancelled, like a timer that already fired."""
        self.function(*self.args)


@pytest.fixture
def timers():
    return []


@pytest.fixture
def timer_factory(timers):
    def factory(interval, function, args=()):
        timer = FakeTimer(interval, function, args)
        timers.append(timer)
        return timer

    return factory


@pytest.fixture
def emitted():
    return []


def make_order(order_id: int = 1, surfboards: int = 3, diving_suits: int = 2) -> EnrichedOrder:
    return EnrichedOrder(
        order_id=order_id,
        customer_id="42",
        first_name="Jane",
        last_name="Doe",
        diving_suits=diving_suits,
        surfboards=surfboards,
        overall_items=surfboards + diving_suits,
    )


def make_credit(order_id: int = 1, valid: bool = True, score: int = 7, **order_fields) -> PartialResult:
    return PartialResult(
        order_id=order_id,
        source=ValidationSource.CREDIT,
        valid=valid,
        detail="Credit score is good" if valid else "Credit score too low",
        order=make_order(order_id, **order_fields),
        credit_score=score,
    )


def make_stock(
    order_id: int = 1, valid: bool = True, levels: Optional[StockLevels] = None, **order_fields
) -> PartialResult:
    return PartialResult(
        order_id=order_id,
        source=ValidationSource.STOCK,
        valid=valid,
        detail="Stock sufficient" if valid else "Insufficient stock",
        order=make_order(order_id, **order_fields),
        stock_after=levels or StockLevels(surfboards=97, diving_suits=48),
    )


@pytest.fixture
def credit_result():
    return make_credit


@pytest.fixture
def stock_result():
    return make_stock
