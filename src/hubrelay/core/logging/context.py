"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_client_name: ContextVar[str] = ContextVar("client_name", default="")
_eventhub_name: ContextVar[str] = ContextVar("eventhub_name", default="")
_partition_id: ContextVar[str] = ContextVar("partition_id", default="")
_event_name: ContextVar[str] = ContextVar("event_name", default="")


def set_log_context(
    client_name: Optional[str] = None,
    eventhub_name: Optional[str] = None,
    partition_id: Optional[str] = None,
    event_name: Optional[str] = None,
) -> None:
    if client_name is not None:
        _client_name.set(client_name)
    if eventhub_name is not None:
        _eventhub_name.set(eventhub_name)
    if partition_id is not None:
        _partition_id.set(partition_id)
    if event_name is not None:
        _event_name.set(event_name)


def get_log_context() -> Dict[str, str]:
    return {
        "client_name": _client_name.get(),
        "eventhub_name": _eventhub_name.get(),
        "partition_id": _partition_id.get(),
        "event_name": _event_name.get(),
    }


def clear_log_context() -> None:
    _client_name.set("")
    _eventhub_name.set("")
    _partition_id.set("")
    _event_name.set("")
