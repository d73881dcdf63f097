"""Logger module for the order service."""

from divesurf_common.config import Settings
from logging_utils import setup_service_logger

settings = Settings.from_env()

logger = setup_service_logger("order-service", log_level=settings.log_level, log_file=settings.log_file)

__all__ = ["logger", "settings"]
