"""Status, version and error responses.

These broadcasts are best-effort: a failed send is logged and never raised,
so answering a status request can not take down the receive loop.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from hubrelay.relay.envelope import Version
from hubrelay.relay.events import (
    ERROR_MESSAGE,
    STATUS_CODE,
    STATUS_RESPONSE,
    VERSION_RESPONSE,
    StatusCode,
)

logger = logging.getLogger(__name__)

SendFn = Callable[[str, Mapping[str, Any] | None, Mapping[str, Any] | None], Awaitable[Any]]


class ResponseEmitter:
    """Composes and sends STATUS_RESPONSE and VERSION_RESPONSE events."""

    def __init__(self, send: SendFn, version: Version) -> None:
        """
        Args:
            send: Outbound primitive ``send(name, data, previous_event)`` returning an awaitable
            version: Version record answered to VERSION_REQUEST
        """
        self._send = send
        self.version = version

    async def _send_best_effort(
        self,
        event_name: str,
        data: dict[str, Any],
        previous_event: Mapping[str, Any] | None,
    ) -> bool:
        """Send and wait for the acknowledgement, logging instead of raising on failure."""
        try:
            await self._send(event_name, data, previous_event)
            return True
        except Exception as e:
            logger.warning(
                f"Best-effort {event_name} could not be sent",
                extra={
                    "event_name": event_name,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            return False

    @staticmethod
    def build_status(
        code: StatusCode | str,
        messages: str | list[str] | None = None,
    ) -> dict[str, Any]:
        """Status payload; messages are only included when the code is not OK."""
        code = StatusCode(code)
        data: dict[str, Any] = {STATUS_CODE: code.value}
        if code is not StatusCode.OK and messages is not None:
            data[ERROR_MESSAGE] = messages
        return data

    async def send_status(
        self,
        code: StatusCode | str,
        messages: str | list[str] | None = None,
        previous_event: Mapping[str, Any] | None = None,
    ) -> bool:
        data = self.build_status(code, messages)
        logger.debug(
            "Sending status response",
            extra={"event_name": STATUS_RESPONSE, "status_code": data[STATUS_CODE]},
        )
        return await self._send_best_effort(STATUS_RESPONSE, data, previous_event)

    async def send_version(self, previous_event: Mapping[str, Any] | None = None) -> bool:
        logger.debug(
            "Sending version response",
            extra={"event_name": VERSION_RESPONSE, "version": str(self.version)},
        )
        return await self._send_best_effort(
            VERSION_RESPONSE, self.version.to_payload(), previous_event
        )

    async def send_error(
        self,
        messages: str | list[str] | None,
        cause: Mapping[str, Any] | None = None,
    ) -> bool:
        return await self.send_status(StatusCode.ERROR, messages, cause)


__all__ = [
    "ResponseEmitter",
]
