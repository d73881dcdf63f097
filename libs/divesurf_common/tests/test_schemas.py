"""Tests for the canonical order schemas and error taxonomy."""

import pytest
from pydantic import ValidationError

from divesurf_common.errors import CorrelationTimeout, DuplicateArrivalWarning, MalformedInputError
from divesurf_common.schemas import EnrichedOrder, PartialResult, StockLevels, ValidationSource


@pytest.fixture
def enriched_order():
    return EnrichedOrder(
        order_id=1,
        customer_id="42",
        first_name="Jane",
        last_name="Doe",
        diving_suits=2,
        surfboards=3,
        overall_items=5,
    )


def test_overall_items_must_match_quantities():
    with pytest.raises(ValidationError):
        EnrichedOrder(
            order_id=1,
            customer_id="42",
            first_name="Jane",
            last_name="Doe",
            diving_suits=2,
            surfboards=3,
            overall_items=6,
        )


def test_stock_levels_expose_total_and_reject_negative_counts():
    levels = StockLevels(surfboards=97, diving_suits=48)

    assert levels.total == 145
    assert levels.model_dump() == {"surfboards": 97, "diving_suits": 48, "total": 145}
    with pytest.raises(ValidationError):
        StockLevels(surfboards=-1, diving_suits=0)


def test_partial_result_survives_the_wire(enriched_order):
    result = PartialResult(
        order_id=1,
        source=ValidationSource.STOCK,
        valid=True,
        detail="Stock sufficient",
        order=enriched_order,
        stock_after=StockLevels(surfboards=97, diving_suits=48),
    )

    assert PartialResult.model_validate_json(result.model_dump_json()) == result


def test_partial_result_rejects_fields_of_the_other_source(enriched_order):
    with pytest.raises(ValidationError):
        PartialResult(order_id=1, source=ValidationSource.CREDIT, valid=True, order=enriched_order,
                      stock_after=StockLevels(surfboards=1, diving_suits=1))
    with pytest.raises(ValidationError):
        PartialResult(order_id=1, source=ValidationSource.STOCK, valid=True, order=enriched_order, credit_score=5)


def test_partial_result_must_match_its_order(enriched_order):
    with pytest.raises(ValidationError):
        PartialResult(order_id=2, source=ValidationSource.CREDIT, valid=True, order=enriched_order, credit_score=5)


def test_schemas_are_immutable(enriched_order):
    with pytest.raises(ValidationError):
        enriched_order.order_id = 5


def test_error_messages():
    assert str(MalformedInputError("bad line", "x,y")) == "bad line | Details: {'line': 'x,y'}"
    assert str(MalformedInputError("bad line")) == "bad line"
    assert str(CorrelationTimeout(3, "stock", 5.0)) == "Incomplete: stock validation missing after 5s"
    assert "order 3" in str(DuplicateArrivalWarning(3, "credit"))
