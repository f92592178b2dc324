"""Transport-agnostic message types for the Event Hub adapters."""

from dataclasses import dataclass

__all__ = [
    "InboundMessage",
    "ProduceResult",
]


@dataclass(frozen=True)
class InboundMessage:
    """Message received from a single Event Hub partition.

    ``enqueued_time`` is the broker-assigned enqueue time in Unix epoch
    milliseconds (0 when the broker did not supply one).
    """

    topic: str
    partition: str
    offset: str | None
    sequence_number: int | None
    enqueued_time: int
    body: bytes | None = None
    properties: dict[str, str] | None = None


@dataclass(frozen=True)
class ProduceResult:
    """Confirmation of a published message."""

    topic: str
    partition: str
    size: int
