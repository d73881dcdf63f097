"""Canonical order schemas shared by every service of the pipeline."""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class ValidationSource(str, Enum):
    """Stage that produced a partial validation result."""

    CREDIT = "credit"
    STOCK = "stock"


class SizeClass(str, Enum):
    """Routing class of an aggregated order."""

    LARGE = "large"
    SMALL = "small"


class NormalizedOrder(BaseModel):
    """Canonical order shape produced from either input dialect.

    Attributes:
        customer_id (str): Customer identifier as entered (numeric or not).
        first_name (str): Customer first name.
        last_name (str): Customer last name.
        diving_suits (int): Number of diving suits ordered.
        surfboards (int): Number of surfboards ordered.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    diving_suits: int = Field(..., ge=0)
    surfboards: int = Field(..., ge=0)


class EnrichedOrder(NormalizedOrder):
    """Normalized order carrying its identifier and item total.

    Attributes:
        order_id (int): Unique, monotonically increasing order identifier.
        overall_items (int): Sum of diving suits and surfboards, computed once
            by the enricher and carried unchanged downstream.
    """

    order_id: int = Field(..., ge=1)
    overall_items: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_overall_items(self) -> "EnrichedOrder":
        if self.overall_items != self.diving_suits + self.surfboards:
            raise ValueError("overall_items must equal diving_suits + surfboards")
        return self

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "order_id": 1,
                "customer_id": "42",
                "first_name": "Jane",
                "last_name": "Doe",
                "diving_suits": 2,
                "surfboards": 3,
                "overall_items": 5,
            }
        },
    )


class StockLevels(BaseModel):
    """Stock counts of the inventory ledger at one point in time."""

    model_config = ConfigDict(frozen=True)

    surfboards: int = Field(..., ge=0)
    diving_suits: int = Field(..., ge=0)

    @computed_field
    @property
    def total(self) -> int:
        return self.surfboards + self.diving_suits


class PartialResult(BaseModel):
    """Outcome of one validation stage for one order.

    Attributes:
        order_id (int): Correlation key.
        source (ValidationSource): Stage that produced the result.
        valid (bool): Whether the stage approved the order.
        detail (str): Human readable reason.
        order (EnrichedOrder): Snapshot of the order the stage validated.
        credit_score (int | None): Score in [1, 10], credit results only.
        stock_after (StockLevels | None): Ledger levels after the check, stock
            results only.
    """

    model_config = ConfigDict(frozen=True)

    order_id: int = Field(..., ge=1)
    source: ValidationSource
    valid: bool
    detail: str = ""
    order: EnrichedOrder
    credit_score: Optional[int] = Field(default=None, ge=1, le=10)
    stock_after: Optional[StockLevels] = None

    @model_validator(mode="after")
    def check_source_fields(self) -> "PartialResult":
        if self.order.order_id != self.order_id:
            raise ValueError("order_id does not match the embedded order")
        if self.source is ValidationSource.CREDIT and self.stock_after is not None:
            raise ValueError("credit results carry no stock levels")
        if self.source is ValidationSource.STOCK and self.credit_score is not None:
            raise ValueError("stock results carry no credit score")
        return self


class AggregatedResult(BaseModel):
    """Joined outcome of the credit and stock validations of one order.

    ``valid`` is true only when both stages arrived and both approved.
    ``complete`` is false when the join hit its deadline with one side missing.
    """

    model_config = ConfigDict(frozen=True)

    order_id: int = Field(..., ge=1)
    customer_id: str
    first_name: str
    last_name: str
    diving_suits: int = Field(..., ge=0)
    surfboards: int = Field(..., ge=0)
    overall_items: int = Field(..., ge=0)
    valid: bool
    detail: str
    credit_valid: Optional[bool] = None
    stock_valid: Optional[bool] = None
    credit_score: Optional[int] = None
    stock_after: Optional[StockLevels] = None
    complete: bool = True
    size_class: Optional[SizeClass] = None


class RawOrderLine(BaseModel):
    """Request body of the ingestion endpoints."""

    line: str = Field(..., min_length=1, description="One raw order line in the channel's dialect")

    model_config = ConfigDict(
        json_schema_extra={"example": {"line": "42,Jane,Doe,2,3"}},
    )


class IngestionReceipt(BaseModel):
    """Response of the ingestion endpoints."""

    status: Literal["accepted"] = "accepted"
    channel: str
    dialect: str
