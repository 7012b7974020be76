"""Structured JSON logging shared by the engine and the CLI."""

from tradeseg.core.logging.config import LOG_LEVELS, LogConfig
from tradeseg.core.logging.logger import (
    apply_log_config,
    configure_from_settings,
    configure_logging,
    current_trace_id,
    get_logger,
    log_context,
    logger,
)

__all__ = [
    "LOG_LEVELS",
    "LogConfig",
    "apply_log_config",
    "configure_from_settings",
    "configure_logging",
    "current_trace_id",
    "get_logger",
    "log_context",
    "logger",
]
