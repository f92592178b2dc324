"""Watermark-gated dispatch of inbound messages.

A message is accepted only if its enqueue time is strictly greater than the
watermark. Accepting advances the watermark and persists it *before* any
handler runs, so after a restart an accepted message is never handed to a
handler again (at-most-once to handlers, at-least-once to the store).

Routing of accepted messages:
- STATUS_REQUEST  -> on_status_request(envelope), or an OK status response
- VERSION_REQUEST -> on_version_request(envelope), or a version response
- anything else   -> on_event(name, data, enqueue_time)

Handler exceptions go to the error handler and never end the receive loop.
WatermarkPersistenceError is the exception: it propagates to the caller.
"""

import inspect
import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from hubrelay.common.types import InboundMessage
from hubrelay.core.errors import WatermarkPersistenceError
from hubrelay.relay.emitter import ResponseEmitter
from hubrelay.relay.envelope import Envelope, decode
from hubrelay.relay.events import STATUS_REQUEST, VERSION_REQUEST, StatusCode
from hubrelay.relay.watermark import UNSET, WatermarkStore

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, dict[str, Any], int], Any]
EnvelopeHandler = Callable[[Envelope], Any]
ErrorHandler = Callable[[Exception], Any]


async def _call(handler: Callable[..., Any], *args: Any) -> None:
    """Call a plain or async handler."""
    result = handler(*args)
    if inspect.isawaitable(result):
        await result


class DispatchGate:
    """Decides accept/reject against the watermark and routes accepted envelopes."""

    def __init__(
        self,
        store: WatermarkStore,
        emitter: ResponseEmitter,
        on_event: EventHandler,
        on_error: ErrorHandler | None = None,
        on_status_request: EnvelopeHandler | None = None,
        on_version_request: EnvelopeHandler | None = None,
    ) -> None:
        self._store = store
        self._emitter = emitter
        self._on_event = on_event
        self._on_error = on_error
        self._on_status_request = on_status_request
        self._on_version_request = on_version_request
        # Guards the compare-and-persist; nothing inside it awaits
        self._lock = threading.Lock()
        self._watermark = store.load()

    @property
    def watermark(self) -> int:
        return self._watermark

    @property
    def is_unset(self) -> bool:
        return self._watermark == UNSET

    def _accept(self, enqueue_time: int) -> bool:
        """Advance and persist the watermark if enqueue_time is newer.

        Raises:
            WatermarkPersistenceError: If the new value could not be saved, whatever
                the store raised; the in-memory watermark is left unchanged
        """
        with self._lock:
            if enqueue_time <= self._watermark:
                return False
            previous = self._watermark
            self._watermark = enqueue_time
            try:
                self._store.save(enqueue_time)
            except WatermarkPersistenceError:
                self._watermark = previous
                raise
            except Exception as e:
                self._watermark = previous
                location = str(getattr(self._store, "path", type(self._store).__name__))
                raise WatermarkPersistenceError(location, enqueue_time, cause=e) from e
            return True

    async def handle(self, message: InboundMessage) -> bool:
        """Receiver-facing entry point."""
        return await self.on_inbound_message(message.body, message.enqueued_time)

    async def on_inbound_message(self, wire_message: Any, enqueue_time: int) -> bool:
        """Gate and dispatch one inbound message.

        Args:
            wire_message: Wire mapping, body mapping, or JSON bytes
            enqueue_time: Transport enqueue time, epoch milliseconds

        Returns:
            True if the message was accepted (whether or not its handler succeeded)

        Raises:
            WatermarkPersistenceError: If the watermark could not be persisted
        """
        envelope: Envelope | None = None
        accepted = False
        try:
            envelope = decode(wire_message)
            if envelope is None:
                logger.debug("Dropping message without an event name")
                return False

            enqueue_time = int(enqueue_time)
            if not self._accept(enqueue_time):
                logger.debug(
                    "Dropping already-seen message",
                    extra={
                        "event_name": envelope.event_name,
                        "enqueue_time": enqueue_time,
                        "watermark": self._watermark,
                    },
                )
                return False
            accepted = True

            await self._route(envelope, enqueue_time)
        except WatermarkPersistenceError:
            raise
        except Exception as e:
            await self.handle_error(e, envelope)
        return accepted

    async def _route(self, envelope: Envelope, enqueue_time: int) -> None:
        name = envelope.event_name
        logger.debug(
            "Dispatching event",
            extra={"event_name": name, "enqueue_time": enqueue_time, "sender": envelope.sender},
        )

        if name == STATUS_REQUEST:
            if self._on_status_request is not None:
                await _call(self._on_status_request, envelope)
            else:
                await self._emitter.send_status(StatusCode.OK, previous_event=envelope.to_body())
        elif name == VERSION_REQUEST:
            if self._on_version_request is not None:
                await _call(self._on_version_request, envelope)
            else:
                await self._emitter.send_version(previous_event=envelope.to_body())
        else:
            await _call(self._on_event, name, dict(envelope.event_data), enqueue_time)

    async def handle_error(
        self, error: Exception, envelope: Envelope | None = None
    ) -> None:
        """Route an error to the caller's handler, or log it and emit an ERROR status."""
        if self._on_error is not None:
            try:
                await _call(self._on_error, error)
            except Exception:
                logger.error("Error handler raised", exc_info=True)
            return

        logger.error(
            f"Error while processing event: {error}",
            extra={
                "event_name": envelope.event_name if envelope else None,
                "error_type": type(error).__name__,
            },
            exc_info=(type(error), error, error.__traceback__),
        )
        cause: Mapping[str, Any] | None = envelope.to_body() if envelope else None
        await self._emitter.send_error([str(error)], cause)


__all__ = [
    "DispatchGate",
    "EventHandler",
    "EnvelopeHandler",
    "ErrorHandler",
]
