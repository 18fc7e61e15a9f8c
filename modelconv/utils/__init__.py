"""Utility functions for modelconv."""

from modelconv.utils.logging import (
    StructuredLogger,
    get_logger,
    log_conversion_result,
    setup_logging,
)

__all__ = [
    "StructuredLogger",
    "get_logger",
    "log_conversion_result",
    "setup_logging",
]
