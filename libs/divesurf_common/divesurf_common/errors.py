"""
Error taxonomy for the order pipeline.

Hierarchy:
    DiveSurfError (base)
    ├── MalformedInputError     - raw order line cannot be parsed (order dropped)
    ├── PersistenceError        - durable state file could not be read or written
    │   └── LedgerPersistenceError - the stock ledger in particular
    └── MessagingError          - broker unavailable or delivery failed

Outcome records (not raised):
    CorrelationTimeout      - marker text for a join that hit its deadline
    DuplicateArrivalWarning - a second partial result from the same source
"""

from typing import Any, Dict, Optional


class DiveSurfError(Exception):
    """Base exception for all order pipeline errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class MalformedInputError(DiveSurfError):
    """A raw order line does not match either accepted dialect.

    The order is reported and dropped; the pipeline keeps running.
    """

    def __init__(self, message: str, line: Optional[str] = None):
        super().__init__(message, {"line": line} if line is not None else None)
        self.line = line


class PersistenceError(DiveSurfError):
    """A durable state file could not be loaded or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, {"path": path} if path is not None else None)
        self.path = path


class LedgerPersistenceError(PersistenceError):
    """The durable copy of the stock ledger could not be loaded or written."""


class MessagingError(DiveSurfError):
    """Publishing to or consuming from the broker failed."""

    def __init__(self, message: str, channel: Optional[str] = None):
        super().__init__(message, {"channel": channel} if channel is not None else None)
        self.channel = channel


class CorrelationTimeout:
    """Outcome of a join whose second partial result never arrived in time.

    Its text is the explicit "incomplete" marker that ends up in the detail
    of the synthesized AggregatedResult.
    """

    def __init__(self, order_id: int, missing_source: str, timeout: float):
        self.order_id = order_id
        self.missing_source = missing_source
        self.timeout = timeout

    def __str__(self) -> str:
        return f"Incomplete: {self.missing_source} validation missing after {self.timeout:g}s"

    def __repr__(self) -> str:
        return f"CorrelationTimeout(order_id={self.order_id}, missing_source={self.missing_source!r})"


class DuplicateArrivalWarning(UserWarning):
    """A partial result arrived twice for the same order and source."""

    def __init__(self, order_id: int, source: str):
        super().__init__(f"Duplicate {source} result for order {order_id} discarded")
        self.order_id = order_id
        self.source = source
