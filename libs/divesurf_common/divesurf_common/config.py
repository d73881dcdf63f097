"""Environment-driven settings shared by all services."""

import os
from typing import Optional

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Runtime settings of a pipeline service.

    Attributes:
        kafka_bootstrap_servers: Comma-separated list of Kafka broker addresses.
        log_level: Minimum level of emitted log records.
        log_file: Optional path of a rotating log file.
        stock_file: Location of the persisted inventory ledger.
        order_id_file: Location of the persisted order id counter.
        correlation_timeout_seconds: Deadline for joining both partial results.
        kafka_delivery_timeout_seconds: Upper bound for one blocking publish.
        result_history_size: Number of delivered results kept for queries.
    """

    kafka_bootstrap_servers: str = "kafka:9092"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    stock_file: str = "stock.json"
    order_id_file: str = "order_id.json"
    correlation_timeout_seconds: float = Field(default=5.0, gt=0)
    kafka_delivery_timeout_seconds: float = Field(default=10.0, gt=0)
    result_history_size: int = Field(default=1000, ge=1)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            kafka_bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", defaults.kafka_bootstrap_servers),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
            log_file=os.getenv("LOG_FILE") or None,
            stock_file=os.getenv("STOCK_FILE", defaults.stock_file),
            order_id_file=os.getenv("ORDER_ID_FILE", defaults.order_id_file),
            correlation_timeout_seconds=os.getenv(
                "CORRELATION_TIMEOUT_SECONDS", defaults.correlation_timeout_seconds
            ),
            kafka_delivery_timeout_seconds=os.getenv(
                "KAFKA_DELIVERY_TIMEOUT_SECONDS", defaults.kafka_delivery_timeout_seconds
            ),
            result_history_size=os.getenv("RESULT_HISTORY_SIZE", defaults.result_history_size),
        )
