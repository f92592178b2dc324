"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- RelayError hierarchy for typed exceptions
"""

from hubrelay.core.errors.exceptions import (
    ConfigurationError,
    # Enums
    ErrorCategory,
    NotConfiguredError,
    PermanentError,
    # Base classes
    RelayError,
    SendError,
    TransientError,
    WatermarkPersistenceError,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "RelayError",
    "TransientError",
    "PermanentError",
    # Relay errors
    "ConfigurationError",
    "NotConfiguredError",
    "WatermarkPersistenceError",
    "SendError",
]
