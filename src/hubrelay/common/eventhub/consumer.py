"""Azure Event Hub receiver adapter.

Receives from exactly one partition of one Event Hub entity using the
azure-eventhub SDK with AMQP over WebSocket transport.

Architecture notes:
- No checkpoint store: progress is tracked by the relay's watermark, which is
  also used to choose the starting position on restart
- Events are handed to the message handler one at a time, in partition order
- A handler exception is logged and the loop continues, except for
  WatermarkPersistenceError which stops the receiver and is re-raised by wait()
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from azure.eventhub import EventData, TransportType
from azure.eventhub.aio import EventHubConsumerClient

from hubrelay.common.eventhub.diagnostics import (
    log_connection_attempt_details,
    log_connection_diagnostics,
    mask_connection_string,
)
from hubrelay.common.types import InboundMessage
from hubrelay.core.errors import WatermarkPersistenceError
from hubrelay.core.ssl_utils import get_ca_bundle_kwargs

logger = logging.getLogger(__name__)


class EventHubConsumerRecord:
    """Adapts EventData to InboundMessage.

    Conversion details:
    - EventData.enqueued_time (datetime) -> InboundMessage.enqueued_time (int milliseconds)
    - EventData.body (bytes or iterable of bytes) -> InboundMessage.body (bytes)
    - EventData.properties (bytes keys/values) -> InboundMessage.properties (str)
    """

    @staticmethod
    def _to_str(value) -> str:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return str(value)

    @staticmethod
    def _convert_properties(properties: dict | None) -> dict[str, str] | None:
        if not properties:
            return None
        return {
            EventHubConsumerRecord._to_str(k): EventHubConsumerRecord._to_str(v)
            for k, v in properties.items()
        }

    @staticmethod
    def _body_bytes(body) -> bytes | None:
        if body is None:
            return None
        if isinstance(body, bytes):
            return body
        if isinstance(body, str):
            return body.encode("utf-8")
        return b"".join(body)

    def __init__(self, event_data: EventData, eventhub_name: str, partition: str) -> None:
        enqueued_time = 0
        if event_data.enqueued_time:
            enqueued_time = int(event_data.enqueued_time.timestamp() * 1000)

        self._message = InboundMessage(
            topic=eventhub_name,
            partition=partition,
            offset=getattr(event_data, "offset", None),
            sequence_number=getattr(event_data, "sequence_number", None),
            enqueued_time=enqueued_time,
            body=self._body_bytes(event_data.body),
            properties=self._convert_properties(event_data.properties),
        )

    def to_inbound_message(self) -> InboundMessage:
        return self._message


def starting_position_for(watermark: int, default: Any) -> Any:
    """Translate a watermark (epoch ms, -1 when unset) into an SDK starting position."""
    if watermark < 0:
        return default
    return datetime.fromtimestamp(watermark / 1000, tz=timezone.utc)


class EventHubReceiver:
    """Single-partition Event Hub receiver.

    ``start()`` creates the consumer client and runs ``receive()`` in a
    background task; ``stop()`` closes the client, which ends that task.
    """

    def __init__(
        self,
        connection_string: str,
        eventhub_name: str,
        consumer_group: str,
        partition_id: str,
        message_handler: Callable[[InboundMessage], Awaitable[None]],
        error_handler: Callable[[Exception], Awaitable[None]] | None = None,
    ):
        """Initialize Event Hub receiver.

        Args:
            connection_string: Namespace-level connection string
            eventhub_name: Event Hub entity name
            consumer_group: Consumer group name
            partition_id: The one partition to receive from
            message_handler: Async function to process each InboundMessage
            error_handler: Async function told about transport-level errors
        """
        self.connection_string = connection_string
        self.eventhub_name = eventhub_name
        self.consumer_group = consumer_group
        self.partition_id = partition_id
        self.message_handler = message_handler
        self.error_handler = error_handler
        self._consumer: EventHubConsumerClient | None = None
        self._task: asyncio.Task | None = None
        self._running = False
        self._fatal_error: Exception | None = None
        self._close_task: asyncio.Task | None = None

    async def start(self, starting_position: Any = "-1") -> None:
        """Create the consumer client and begin receiving in the background.

        Raises:
            Exception: If the consumer client cannot be created
        """
        if self._running:
            logger.warning("Receiver already running, ignoring duplicate start call")
            return

        logger.info(
            "Starting Event Hub receiver",
            extra={
                "entity": self.eventhub_name,
                "consumer_group": self.consumer_group,
                "partition_id": self.partition_id,
                "starting_position": str(starting_position),
            },
        )

        try:
            log_connection_diagnostics(self.connection_string, self.eventhub_name, self.partition_id)
            ssl_kwargs = get_ca_bundle_kwargs()
            log_connection_attempt_details(
                eventhub_name=self.eventhub_name,
                transport_type="AmqpOverWebsocket",
                ssl_kwargs=ssl_kwargs,
            )

            self._consumer = EventHubConsumerClient.from_connection_string(
                conn_str=self.connection_string,
                consumer_group=self.consumer_group,
                eventhub_name=self.eventhub_name,
                transport_type=TransportType.AmqpOverWebsocket,
                **ssl_kwargs,
            )
        except Exception as e:
            logger.error(
                "Failed to create Event Hub consumer",
                extra={
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "entity": self.eventhub_name,
                    "connection_string_masked": mask_connection_string(self.connection_string),
                },
                exc_info=True,
            )
            raise

        self._fatal_error = None
        self._close_task = None
        self._running = True
        self._task = asyncio.create_task(self._receive_loop(starting_position))

    async def _receive_loop(self, starting_position: Any) -> None:
        # NOTE: Not `async with self._consumer:`; stop() owns closing the client.
        try:
            await self._consumer.receive(
                on_event=self._on_event,
                on_error=self._on_error,
                partition_id=self.partition_id,
                starting_position=starting_position,
                starting_position_inclusive=False,
            )
        except Exception:
            logger.error("Error in Event Hub receive loop", exc_info=True)
            raise
        finally:
            self._running = False

    async def _on_event(self, partition_context, event) -> None:
        if not self._running or event is None or self._fatal_error is not None:
            return

        partition_id = partition_context.partition_id if partition_context else self.partition_id
        message = EventHubConsumerRecord(event, self.eventhub_name, partition_id).to_inbound_message()

        try:
            await self.message_handler(message)
        except WatermarkPersistenceError as e:
            logger.critical(
                "Watermark could not be persisted - stopping receiver",
                extra={"error": str(e), "partition_id": partition_id},
                exc_info=True,
            )
            self._fatal_error = e
            self._close_task = asyncio.get_running_loop().create_task(self._consumer.close())
        except Exception:
            logger.error(
                "Message processing failed",
                extra={
                    "entity": self.eventhub_name,
                    "partition_id": partition_id,
                },
                exc_info=True,
            )

    async def _on_error(self, partition_context, error) -> None:
        partition_id = partition_context.partition_id if partition_context else "unknown"
        logger.error(
            "Event Hub receiver error on partition %s: %s: %s",
            partition_id,
            type(error).__name__,
            error,
            extra={
                "partition_id": partition_id,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        if self.error_handler is not None:
            await self.error_handler(error)

    async def wait(self) -> None:
        """Block until the receive loop ends.

        Raises:
            WatermarkPersistenceError: If the loop ended because the watermark could not be saved
        """
        if self._task is not None:
            await self._task
        if self._close_task is not None:
            await self._close_task
        if self._fatal_error is not None:
            raise self._fatal_error

    async def stop(self) -> None:
        if self._consumer is None:
            logger.debug("Receiver not running or already stopped")
            return

        logger.info("Stopping Event Hub receiver")
        self._running = False

        try:
            if self._close_task is not None:
                await self._close_task
            await self._consumer.close()
            if self._task is not None:
                await self._task
            logger.info("Event Hub receiver stopped successfully")
        except Exception:
            logger.error("Error stopping Event Hub receiver", exc_info=True)
            raise
        finally:
            self._consumer = None
            self._task = None
            self._close_task = None

            # The SDK's websocket transport leaves aiohttp sessions closing in the background
            await asyncio.sleep(0.250)

    @property
    def is_running(self) -> bool:
        return self._running and self._consumer is not None


__all__ = [
    "EventHubConsumerRecord",
    "EventHubReceiver",
    "starting_position_for",
]
