"""
Structured logging module.

Provides JSON logging with context propagation.
"""

from hubrelay.core.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from hubrelay.core.logging.formatters import ConsoleFormatter, JSONFormatter
from hubrelay.core.logging.setup import (
    get_log_file_path,
    get_logger,
    setup_logging,
)

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    "get_log_file_path",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
]
