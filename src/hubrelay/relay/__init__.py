"""Watermark-gated event relay: envelope codec, dispatch gate and responses."""

from hubrelay.relay.client import STOP_MESSAGE, EventHubRelay, RelayContext
from hubrelay.relay.emitter import ResponseEmitter
from hubrelay.relay.envelope import Envelope, Version, decode, encode
from hubrelay.relay.events import StatusCode
from hubrelay.relay.gate import DispatchGate
from hubrelay.relay.watermark import (
    UNSET,
    FileWatermarkStore,
    InMemoryWatermarkStore,
    WatermarkStore,
)

__all__ = [
    "STOP_MESSAGE",
    "UNSET",
    "DispatchGate",
    "Envelope",
    "EventHubRelay",
    "FileWatermarkStore",
    "InMemoryWatermarkStore",
    "RelayContext",
    "ResponseEmitter",
    "StatusCode",
    "Version",
    "WatermarkStore",
    "decode",
    "encode",
]
