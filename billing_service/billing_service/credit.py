"""Deterministic credit check of a customer."""

from divesurf_common.schemas import EnrichedOrder, PartialResult, ValidationSource

from .logger import logger

MIN_CREDIT_SCORE = 5

CREDIT_OK = "Credit score is good"
CREDIT_TOO_LOW = "Credit score too low"


def credit_score(customer_id: str) -> int:
    """Score a customer from the digits of its identifier.

    The digits are summed, and the score is ``digit_sum % 10 + 1``, giving a
    value between 1 and 10. Non-digit characters are ignored.
    """
    digit_sum = sum(int(char) for char in customer_id if char in "0123456789")
    return digit_sum % 10 + 1


class CreditValidator:
    """Approves orders of customers with a credit score of at least 5."""

    def __init__(self, min_score: int = MIN_CREDIT_SCORE):
        self.min_score = min_score

    def validate(self, order: EnrichedOrder) -> PartialResult:
        """Return the credit PartialResult for an order."""
        score = credit_score(order.customer_id)
        valid = score >= self.min_score
        logger.info(
            f"Billing validation: {order.order_id} - {'APPROVED' if valid else 'REJECTED'} | "
            f"customer_id={order.customer_id} | credit_score={score}"
        )
        return PartialResult(
            order_id=order.order_id,
            source=ValidationSource.CREDIT,
            valid=valid,
            detail=CREDIT_OK if valid else CREDIT_TOO_LOW,
            order=order,
            credit_score=score,
        )
