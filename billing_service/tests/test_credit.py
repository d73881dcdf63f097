"""Tests for the credit scoring rules."""

import pytest

from billing_service.credit import CREDIT_OK, CREDIT_TOO_LOW, CreditValidator, credit_score
from divesurf_common.schemas import EnrichedOrder, ValidationSource


def make_order(customer_id: str, order_id: int = 1) -> EnrichedOrder:
    return EnrichedOrder(
        order_id=order_id,
        customer_id=customer_id,
        first_name="Jane",
        last_name="Doe",
        diving_suits=2,
        surfboards=3,
        overall_items=5,
    )


@pytest.mark.parametrize(
    "customer_id,expected",
    [
        ("42", 7),  # digit sum 6
        ("0", 1),
        ("9", 10),
        ("19", 1),  # digit sum 10 wraps around
        ("C-4x2", 7),  # letters are ignored
        ("abc", 1),  # no digits at all
    ],
)
def test_credit_score(customer_id, expected):
    assert credit_score(customer_id) == expected


def test_score_is_always_between_one_and_ten():
    for number in range(1000):
        assert 1 <= credit_score(str(number)) <= 10


def test_score_five_is_approved():
    result = CreditValidator().validate(make_order("4"))

    assert result.credit_score == 5
    assert result.valid is True
    assert result.detail == CREDIT_OK


def test_score_four_is_rejected():
    result = CreditValidator().validate(make_order("3"))

    assert result.credit_score == 4
    assert result.valid is False
    assert result.detail == CREDIT_TOO_LOW


def test_result_is_tagged_with_source_and_order():
    order = make_order("42", order_id=9)
    result = CreditValidator().validate(order)

    assert result.source is ValidationSource.CREDIT
    assert result.order_id == 9
    assert result.order == order
    assert result.stock_after is None
