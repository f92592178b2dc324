"""Watermark-gated event relay for Azure Event Hubs."""

from hubrelay.relay import (
    DispatchGate,
    Envelope,
    EventHubRelay,
    FileWatermarkStore,
    InMemoryWatermarkStore,
    RelayContext,
    ResponseEmitter,
    StatusCode,
    Version,
    decode,
    encode,
)

__all__ = [
    "DispatchGate",
    "Envelope",
    "EventHubRelay",
    "FileWatermarkStore",
    "InMemoryWatermarkStore",
    "RelayContext",
    "ResponseEmitter",
    "StatusCode",
    "Version",
    "decode",
    "encode",
]
