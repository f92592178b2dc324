"""
Core types shared across the relay.

Provides the error classification enum used by the exception hierarchy
to decide whether a failure is fatal or may be retried by the caller.
"""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that may succeed if attempted again
                   (e.g., network timeouts, throttled sends)
        PERMANENT: Failures that will not succeed on retry
                   (e.g., missing configuration, watermark not persisted)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


__all__ = [
    "ErrorCategory",
]
