"""Azure Event Hub producer adapter.

Sends JSON-encoded messages to one fixed partition of one Event Hub entity,
using the azure-eventhub SDK with AMQP over WebSocket transport for
compatibility with Azure Private Link.
"""

import asyncio
import json
import logging
from typing import Any

from azure.eventhub import EventData, TransportType
from azure.eventhub.aio import EventHubProducerClient
from pydantic import BaseModel

from hubrelay.common.eventhub.diagnostics import (
    log_connection_attempt_details,
    log_connection_diagnostics,
    mask_connection_string,
)
from hubrelay.common.types import ProduceResult
from hubrelay.core.errors import SendError
from hubrelay.core.ssl_utils import get_ca_bundle_kwargs
from hubrelay.core.utils import json_serializer

logger = logging.getLogger(__name__)


class EventHubProducer:
    """Event Hub producer bound to a single partition.

    All sends go to ``partition_id`` so that responses share the partition's
    natural ordering with the requests they answer.
    """

    def __init__(
        self,
        connection_string: str,
        eventhub_name: str,
        partition_id: str,
    ):
        """Initialize Event Hub producer.

        Args:
            connection_string: Namespace-level connection string
            eventhub_name: Event Hub entity name
            partition_id: Partition every message is sent to
        """
        self.connection_string = connection_string
        self.eventhub_name = eventhub_name
        self.partition_id = partition_id
        self._producer: EventHubProducerClient | None = None
        self._started = False

        logger.debug(
            "Initialized Event Hub producer",
            extra={
                "entity": eventhub_name,
                "partition_id": partition_id,
                "transport": "AmqpOverWebsocket",
            },
        )

    async def start(self) -> None:
        if self._started:
            logger.warning("Producer already started, ignoring duplicate start call")
            return

        logger.info("Starting Event Hub producer")

        try:
            log_connection_diagnostics(self.connection_string, self.eventhub_name, self.partition_id)
            ssl_kwargs = get_ca_bundle_kwargs()
            log_connection_attempt_details(
                eventhub_name=self.eventhub_name,
                transport_type="AmqpOverWebsocket",
                ssl_kwargs=ssl_kwargs,
            )

            self._producer = EventHubProducerClient.from_connection_string(
                conn_str=self.connection_string,
                eventhub_name=self.eventhub_name,
                transport_type=TransportType.AmqpOverWebsocket,
                **ssl_kwargs,
            )
            self._started = True

            logger.info(
                "Event Hub producer started successfully",
                extra={"entity": self.eventhub_name, "partition_id": self.partition_id},
            )

        except Exception as e:
            logger.error(
                "Failed to start Event Hub producer",
                extra={
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "entity": self.eventhub_name,
                    "connection_string_masked": mask_connection_string(self.connection_string),
                },
                exc_info=True,
            )
            raise

    async def stop(self) -> None:
        if self._producer is None:
            logger.debug("Producer not started or already stopped")
            return

        logger.info("Stopping Event Hub producer")

        try:
            await self._producer.close()
            logger.info("Event Hub producer stopped successfully")
        except Exception as e:
            logger.error(
                "Error stopping Event Hub producer",
                extra={"error": str(e)},
                exc_info=True,
            )
        finally:
            self._producer = None
            self._started = False

            # The SDK's websocket transport leaves aiohttp sessions closing in the background
            await asyncio.sleep(0.250)

    @staticmethod
    def _serialize_value(value: "BaseModel | dict[str, Any] | bytes") -> bytes:
        """Serialize message value to bytes."""
        if isinstance(value, bytes):
            return value
        if hasattr(value, "model_dump_json"):
            return value.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
        return json.dumps(value, default=json_serializer).encode("utf-8")

    async def send(self, value: BaseModel | dict[str, Any] | bytes) -> ProduceResult:
        """Send a single message to the configured partition.

        Args:
            value: Message value (Pydantic model, dict, or bytes)

        Returns:
            ProduceResult once the broker acknowledged the batch

        Raises:
            RuntimeError: If the producer has not been started
            SendError: If the transport rejected the message
        """
        if not self._started or self._producer is None:
            raise RuntimeError("Producer not started. Call start() first.")

        value_bytes = self._serialize_value(value)

        logger.debug(
            "Sending message to Event Hub",
            extra={
                "entity": self.eventhub_name,
                "partition_id": self.partition_id,
                "value_size": len(value_bytes),
            },
        )

        try:
            batch = await self._producer.create_batch(partition_id=self.partition_id)
            batch.add(EventData(value_bytes))
            await self._producer.send_batch(batch)
        except Exception as e:
            logger.error(
                "Failed to send message",
                extra={"entity": self.eventhub_name, "error": str(e)},
                exc_info=True,
            )
            raise SendError(
                f"Failed to send message to {self.eventhub_name}",
                cause=e,
                context={"partition_id": self.partition_id},
            ) from e

        return ProduceResult(
            topic=self.eventhub_name,
            partition=self.partition_id,
            size=len(value_bytes),
        )

    @property
    def is_started(self) -> bool:
        return self._started and self._producer is not None


__all__ = [
    "EventHubProducer",
]
