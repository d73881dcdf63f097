"""Logger module for the result service."""

from divesurf_common.config import Settings
from logging_utils import setup_service_logger

settings = Settings.from_env()

logger = setup_service_logger("result-service", log_level=settings.log_level, log_file=settings.log_file)
