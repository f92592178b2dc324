"""
Exception hierarchy for hubrelay.

Provides typed exceptions with an error category so callers can tell
fatal configuration and persistence problems apart from transient
transport failures.
"""

from hubrelay.core.types import ErrorCategory


class RelayError(Exception):
    """
    Base exception for all relay errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (ErrorCategory.TRANSIENT, ErrorCategory.UNKNOWN)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Category bases
# =============================================================================


class TransientError(RelayError):
    """Base class for transient/retriable errors."""

    category = ErrorCategory.TRANSIENT


class PermanentError(RelayError):
    """Base class for permanent/non-retriable errors."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Relay errors
# =============================================================================


class ConfigurationError(PermanentError):
    """Missing or malformed Event Hub configuration or package info."""

    pass


class NotConfiguredError(PermanentError):
    """An operation was called before configure()."""

    def __init__(self, operation: str):
        super().__init__(
            f"Call configure before {operation}",
            context={"operation": operation},
        )
        self.operation = operation


class WatermarkPersistenceError(PermanentError):
    """The watermark could not be written to durable storage.

    Continuing without a persisted watermark would reprocess events after a
    restart, so this error is never swallowed.
    """

    def __init__(self, path: str, value: int, cause: Exception | None = None):
        super().__init__(
            f"Failed to persist watermark {value} to {path}",
            cause=cause,
            context={"path": path, "watermark": value},
        )
        self.path = path
        self.value = value


class SendError(TransientError):
    """The transport rejected an outbound message."""

    pass


__all__ = [
    "ErrorCategory",
    "RelayError",
    "TransientError",
    "PermanentError",
    "ConfigurationError",
    "NotConfiguredError",
    "WatermarkPersistenceError",
    "SendError",
]
