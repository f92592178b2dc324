"""Azure Event Hub transport adapters."""

from hubrelay.common.eventhub.consumer import (
    EventHubConsumerRecord,
    EventHubReceiver,
    starting_position_for,
)
from hubrelay.common.eventhub.producer import EventHubProducer

__all__ = [
    "EventHubConsumerRecord",
    "EventHubProducer",
    "EventHubReceiver",
    "starting_position_for",
]
