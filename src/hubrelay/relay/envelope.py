"""
Envelope codec for relay messages.

Wire shape (UTF-8 JSON in the EventData body):

    {
        "body": {
            "eventName": "ORDER_PLACED",
            "eventData": {
                ...caller fields...,
                "sender": "billing-service",
                "previousEvent": {...}      # only when responding to an event
            }
        }
    }
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from hubrelay.core.errors import ConfigurationError
from hubrelay.relay.events import (
    BODY,
    EVENT_DATA,
    EVENT_NAME,
    PREVIOUS_EVENT,
    SENDER,
    VERSION_HOTFIX,
    VERSION_PATCH,
    VERSION_RELEASE,
)

logger = logging.getLogger(__name__)


class Envelope(BaseModel):
    """Decoded inbound event.

    Attributes:
        event_name: Name of the event (never empty)
        event_data: Event payload exactly as received, including ``sender``
            and ``previousEvent`` when present
        sender: Client identity of the service that sent the event
        previous_event: Body of the event this one responds to, if any
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event_name: str = Field(..., alias=EVENT_NAME, min_length=1)
    event_data: dict[str, Any] = Field(default_factory=dict, alias=EVENT_DATA)
    sender: str | None = None
    previous_event: dict[str, Any] | None = None

    @field_validator("event_name")
    @classmethod
    def validate_event_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("eventName cannot be empty or whitespace")
        return v

    def to_body(self) -> dict[str, Any]:
        """Body mapping used to reference this event as a causal predecessor."""
        return {EVENT_NAME: self.event_name, EVENT_DATA: dict(self.event_data)}


class Version(BaseModel):
    """Release/patch/hotfix triple derived from the host's ``X.Y.Z`` version."""

    model_config = ConfigDict(frozen=True)

    release: str
    patch: str
    hotfix: str

    @classmethod
    def parse(cls, version: str) -> "Version":
        """
        Split a dotted three-part version string.

        Raises:
            ConfigurationError: Unless the string has exactly three non-empty parts

        Example:
            >>> Version.parse("2.3.1").to_payload()
            {'release': '2', 'patch': '3', 'hotfix': '1'}
        """
        parts = version.strip().split(".") if isinstance(version, str) else []
        if len(parts) != 3 or not all(parts):
            raise ConfigurationError(
                f"Package version must look like X.Y.Z, got {version!r}"
            )
        return cls(release=parts[0], patch=parts[1], hotfix=parts[2])

    def to_payload(self) -> dict[str, str]:
        """A fresh dict on every call so callers can augment it freely."""
        return {
            VERSION_RELEASE: self.release,
            VERSION_PATCH: self.patch,
            VERSION_HOTFIX: self.hotfix,
        }

    def __str__(self) -> str:
        return f"{self.release}.{self.patch}.{self.hotfix}"


def encode(
    event_name: str,
    event_data: Mapping[str, Any] | None,
    sender: str,
    previous_event: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the wire message for an outbound event.

    The caller's ``event_data`` is copied, never modified. ``previous_event``
    is attached only when it is given and non-empty.

    Raises:
        ValueError: If event_name is empty
    """
    if not event_name:
        raise ValueError("event_name is required")

    data = dict(event_data) if event_data is not None else {}
    data[SENDER] = sender
    if previous_event is not None and len(previous_event) > 0:
        data[PREVIOUS_EVENT] = dict(previous_event)

    return {BODY: {EVENT_NAME: event_name, EVENT_DATA: data}}


def _extract_body(wire: Any) -> Any:
    if isinstance(wire, (bytes, bytearray)):
        wire = wire.decode("utf-8")
    if isinstance(wire, str):
        wire = json.loads(wire)
    if isinstance(wire, Mapping) and BODY in wire:
        return wire[BODY]
    return wire


def decode(wire: Any) -> Envelope | None:
    """Extract the envelope from a wire message.

    Accepts the wire mapping, a bare body mapping, or its JSON text/bytes.
    Returns None when the body is absent, not a mapping, or has no event name.
    """
    try:
        body = _extract_body(wire)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.debug(f"Undecodable message body: {e}")
        return None

    if not isinstance(body, Mapping) or EVENT_NAME not in body:
        return None

    data = body.get(EVENT_DATA)
    if not isinstance(data, Mapping):
        data = {}

    previous = data.get(PREVIOUS_EVENT)
    sender = data.get(SENDER)
    try:
        return Envelope(
            event_name=body[EVENT_NAME],
            event_data=dict(data),
            sender=sender if isinstance(sender, str) else None,
            previous_event=dict(previous) if isinstance(previous, Mapping) else None,
        )
    except ValidationError as e:
        logger.debug(f"Invalid envelope: {e.error_count()} validation error(s)")
        return None


__all__ = [
    "Envelope",
    "Version",
    "decode",
    "encode",
]
