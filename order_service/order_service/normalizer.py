"""Message translator from the two raw order dialects to the canonical order.

Web orders (dialect A):          customerId,firstName,lastName,divingSuits,surfboards
Call-center orders (dialect B):  Full Name,surfboards,divingSuits,customerId

A line whose first field is entirely numeric is a web order, anything else
is a call-center order.
"""

import re
from typing import Literal, Union

from divesurf_common.errors import MalformedInputError
from divesurf_common.schemas import NormalizedOrder
from pydantic import BaseModel, ConfigDict

WEB_FIELD_COUNT = 5
CALL_CENTER_FIELD_COUNT = 4

_NUMERIC = re.compile(r"[0-9]+")
_INTEGER = re.compile(r"[+-]?[0-9]+")


class WebOrderLine(BaseModel):
    """Dialect A: numeric customer id first, name already split."""

    model_config = ConfigDict(frozen=True)

    dialect: Literal["web"] = "web"
    customer_id: str
    first_name: str
    last_name: str
    diving_suits: str
    surfboards: str


class CallCenterOrderLine(BaseModel):
    """Dialect B: full name first, customer id last."""

    model_config = ConfigDict(frozen=True)

    dialect: Literal["call-center"] = "call-center"
    full_name: str
    surfboards: str
    diving_suits: str
    customer_id: str


RawOrderInput = Union[WebOrderLine, CallCenterOrderLine]


def classify_line(line: str) -> RawOrderInput:
    """Split a raw line into the fields of its dialect.

    Args:
        line: One raw order line.

    Returns:
        RawOrderInput: The dialect-specific field set.

    Raises:
        MalformedInputError: If the field count does not match the dialect.
    """
    if line is None or not line.strip():
        raise MalformedInputError("Empty order line", line)

    fields = [field.strip() for field in line.strip().split(",")]

    if _NUMERIC.fullmatch(fields[0]):
        if len(fields) != WEB_FIELD_COUNT:
            raise MalformedInputError(
                f"Web order needs {WEB_FIELD_COUNT} comma-separated fields, got {len(fields)}", line
            )
        customer_id, first_name, last_name, diving_suits, surfboards = fields
        return WebOrderLine(
            customer_id=customer_id,
            first_name=first_name,
            last_name=last_name,
            diving_suits=diving_suits,
            surfboards=surfboards,
        )

    if len(fields) != CALL_CENTER_FIELD_COUNT:
        raise MalformedInputError(
            f"Call-center order needs {CALL_CENTER_FIELD_COUNT} comma-separated fields, got {len(fields)}", line
        )
    full_name, surfboards, diving_suits, customer_id = fields
    return CallCenterOrderLine(
        full_name=full_name,
        surfboards=surfboards,
        diving_suits=diving_suits,
        customer_id=customer_id,
    )


def _parse_quantity(value: str, name: str, line: str) -> int:
    if not _INTEGER.fullmatch(value):
        raise MalformedInputError(f"{name} must be an integer, got {value!r}", line)
    quantity = int(value)
    if quantity < 0:
        raise MalformedInputError(f"{name} must not be negative, got {quantity}", line)
    return quantity


def _require(value: str, name: str, line: str) -> str:
    if not value:
        raise MalformedInputError(f"{name} is empty", line)
    return value


def to_normalized(raw: RawOrderInput, line: str = "") -> NormalizedOrder:
    """Convert a classified raw line into a NormalizedOrder."""
    if raw.dialect == "web":
        first_name = _require(raw.first_name, "First name", line)
        last_name = _require(raw.last_name, "Last name", line)
    else:
        name_parts = raw.full_name.split(None, 1)
        if len(name_parts) < 2:
            raise MalformedInputError(f"Full name needs first and last name, got {raw.full_name!r}", line)
        first_name, last_name = name_parts[0], name_parts[1].strip()

    return NormalizedOrder(
        customer_id=_require(raw.customer_id, "Customer ID", line),
        first_name=first_name,
        last_name=last_name,
        diving_suits=_parse_quantity(raw.diving_suits, "Diving suits", line),
        surfboards=_parse_quantity(raw.surfboards, "Surfboards", line),
    )


def normalize_order(line: str) -> NormalizedOrder:
    """Parse a raw order line of either dialect into a NormalizedOrder.

    Raises:
        MalformedInputError: If the line matches neither dialect.
    """
    return to_normalized(classify_line(line), line)
