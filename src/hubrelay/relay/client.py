"""Relay session: configure once, then send, start receiving, and stop.

Usage:
    >>> relay = EventHubRelay()
    >>> relay.configure(load_config("relay.yaml"), {"name": "svc", "version": "2.3.1"})
    >>> await relay.start(on_event=handle_event)
    >>> await relay.send("ORDER_PLACED", {"orderId": 42})
    >>> await relay.stop()

All per-process state (client identity, version, producer, receiver and
watermark) lives in the RelayContext built by configure().
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from hubrelay.common.eventhub.consumer import EventHubReceiver, starting_position_for
from hubrelay.common.eventhub.diagnostics import mask_connection_string
from hubrelay.common.eventhub.producer import EventHubProducer
from hubrelay.common.types import ProduceResult
from hubrelay.config import EventHubSettings, PackageInfo
from hubrelay.core.errors import NotConfiguredError
from hubrelay.core.logging import set_log_context
from hubrelay.relay.emitter import ResponseEmitter
from hubrelay.relay.envelope import Version, encode
from hubrelay.relay.events import StatusCode
from hubrelay.relay.gate import DispatchGate, EnvelopeHandler, ErrorHandler, EventHandler
from hubrelay.relay.watermark import FileWatermarkStore, WatermarkStore

logger = logging.getLogger(__name__)

STOP_MESSAGE = "EventHubRelay.stop was called."


@dataclass
class RelayContext:
    """Everything configure() establishes for the lifetime of a relay."""

    settings: EventHubSettings
    package: PackageInfo
    version: Version
    store: WatermarkStore
    producer: EventHubProducer
    emitter: ResponseEmitter
    gate: DispatchGate | None = None
    receiver: EventHubReceiver | None = None

    @property
    def client_name(self) -> str:
        return self.package.name


class EventHubRelay:
    """Sends envelopes to, and dispatches envelopes from, one Event Hub partition."""

    def __init__(self) -> None:
        self._context: RelayContext | None = None

    # =========================================================================
    # Configuration
    # =========================================================================

    def configure(
        self,
        config: Mapping[str, Any],
        package_info: Mapping[str, Any] | PackageInfo,
        store: WatermarkStore | None = None,
    ) -> RelayContext:
        """Validate configuration and build the relay context.

        Args:
            config: Mapping holding an ``eventHub`` section
            package_info: Host application ``{"name": ..., "version": "X.Y.Z"}``
            store: Watermark store; defaults to a file at ``eventHub.watermarkPath``

        Raises:
            ConfigurationError: On a missing section, connection string, hub name,
                package name or malformed version
            RuntimeError: If the relay is receiving or its producer is still open
        """
        if self._context is not None and (
            self._context.receiver is not None or self._context.producer.is_started
        ):
            raise RuntimeError("Cannot reconfigure a started relay; call stop() first")

        settings = EventHubSettings.from_config(config)
        package = (
            package_info
            if isinstance(package_info, PackageInfo)
            else PackageInfo.from_mapping(package_info)
        )
        version = Version.parse(package.version)

        producer = EventHubProducer(
            connection_string=settings.connection_string,
            eventhub_name=settings.eventhub_name,
            partition_id=settings.partition_id,
        )
        self._context = RelayContext(
            settings=settings,
            package=package,
            version=version,
            store=store if store is not None else FileWatermarkStore(settings.watermark_path),
            producer=producer,
            emitter=ResponseEmitter(self.send, version),
        )

        set_log_context(
            client_name=package.name,
            eventhub_name=settings.eventhub_name,
            partition_id=settings.partition_id,
        )
        logger.info(
            "Relay configured",
            extra={
                "client_name": package.name,
                "version": str(version),
                "entity": settings.eventhub_name,
                "partition_id": settings.partition_id,
                "consumer_group": settings.consumer_group,
                "connection_string_masked": mask_connection_string(settings.connection_string),
            },
        )
        return self._context

    def _require_configured(self, operation: str) -> RelayContext:
        if self._context is None:
            raise NotConfiguredError(operation)
        return self._context

    @property
    def context(self) -> RelayContext:
        return self._require_configured("context")

    @property
    def is_configured(self) -> bool:
        return self._context is not None

    @property
    def client_name(self) -> str:
        return self._require_configured("client_name").client_name

    @property
    def version(self) -> Version:
        return self._require_configured("version").version

    @property
    def watermark(self) -> int:
        ctx = self._require_configured("watermark")
        if ctx.gate is not None:
            return ctx.gate.watermark
        return ctx.store.load()

    @property
    def is_running(self) -> bool:
        return (
            self._context is not None
            and self._context.receiver is not None
            and self._context.receiver.is_running
        )

    # =========================================================================
    # Sending
    # =========================================================================

    def send(
        self,
        name: str,
        data: Mapping[str, Any] | None = None,
        previous_event: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[ProduceResult]":
        """Schedule an event for sending and return its pending acknowledgement.

        Must be called from a running event loop. Awaiting the returned future
        yields the ProduceResult or raises the transport error; ignoring it is
        allowed.

        Raises:
            NotConfiguredError: If configure() has not been called
            ValueError: If name is empty
        """
        ctx = self._require_configured("send")
        wire = encode(name, data, ctx.client_name, previous_event)
        return asyncio.ensure_future(self._send_wire(ctx, wire))

    @staticmethod
    async def _send_wire(ctx: RelayContext, wire: dict[str, Any]) -> ProduceResult:
        if not ctx.producer.is_started:
            await ctx.producer.start()
        return await ctx.producer.send(wire)

    def error(
        self,
        messages: str | list[str] | None,
        cause: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[bool]":
        """Broadcast an ERROR status (best-effort) tagged with the event that caused it."""
        ctx = self._require_configured("error")
        return asyncio.ensure_future(ctx.emitter.send_error(messages, cause))

    # =========================================================================
    # Receiving
    # =========================================================================

    async def start(
        self,
        on_event: EventHandler,
        on_error: ErrorHandler | None = None,
        on_status_request: EnvelopeHandler | None = None,
        on_version_request: EnvelopeHandler | None = None,
    ) -> None:
        """Start dispatching inbound events and announce this client's version.

        Handlers may be plain functions or coroutine functions. Without
        on_error, errors are logged and reported as an ERROR status event.

        Raises:
            NotConfiguredError: If configure() has not been called
        """
        ctx = self._require_configured("start")
        if ctx.receiver is not None:
            logger.warning("Relay already started, ignoring duplicate start call")
            return

        if not ctx.producer.is_started:
            await ctx.producer.start()

        ctx.gate = DispatchGate(
            store=ctx.store,
            emitter=ctx.emitter,
            on_event=on_event,
            on_error=on_error,
            on_status_request=on_status_request,
            on_version_request=on_version_request,
        )
        receiver = EventHubReceiver(
            connection_string=ctx.settings.connection_string,
            eventhub_name=ctx.settings.eventhub_name,
            consumer_group=ctx.settings.consumer_group,
            partition_id=ctx.settings.partition_id,
            message_handler=ctx.gate.handle,
            error_handler=ctx.gate.handle_error,
        )
        await receiver.start(
            starting_position_for(ctx.gate.watermark, ctx.settings.starting_position)
        )
        ctx.receiver = receiver

        logger.info(
            "Relay started",
            extra={"client_name": ctx.client_name, "watermark": ctx.gate.watermark},
        )
        await ctx.emitter.send_version()

    async def wait(self) -> None:
        """Block until receiving ends (stop() or a fatal watermark error)."""
        ctx = self._require_configured("wait")
        if ctx.receiver is not None:
            await ctx.receiver.wait()

    async def stop(self) -> None:
        """Announce OFFLINE (best-effort), stop receiving and close the producer.

        Raises:
            NotConfiguredError: If configure() has not been called
        """
        ctx = self._require_configured("stop")
        if ctx.receiver is not None:
            await ctx.emitter.send_status(StatusCode.OFFLINE, STOP_MESSAGE)
            try:
                await ctx.receiver.stop()
            finally:
                ctx.receiver = None
        await ctx.producer.stop()
        logger.info("Relay stopped", extra={"client_name": ctx.client_name})


__all__ = [
    "EventHubRelay",
    "RelayContext",
    "STOP_MESSAGE",
]
