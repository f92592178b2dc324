"""Tests for ResponseEmitter status, version and error broadcasts."""

from unittest.mock import AsyncMock

import pytest

from hubrelay.relay.emitter import ResponseEmitter
from hubrelay.relay.envelope import Version
from hubrelay.relay.events import StatusCode


@pytest.fixture
def send():
    return AsyncMock()


@pytest.fixture
def emitter(send):
    return ResponseEmitter(send, Version.parse("2.3.1"))


class TestBuildStatus:
    def test_ok_never_carries_messages(self):
        assert ResponseEmitter.build_status(StatusCode.OK, ["ignored"]) == {"statusCode": "OK"}

    def test_error_carries_messages(self):
        data = ResponseEmitter.build_status(StatusCode.ERROR, ["boom"])

        assert data == {"statusCode": "ERROR", "errorMessage": ["boom"]}

    def test_error_without_messages(self):
        assert ResponseEmitter.build_status("ERROR") == {"statusCode": "ERROR"}

    def test_unknown_code_rejected(self):
        with pytest.raises(ValueError):
            ResponseEmitter.build_status("MAYBE")


class TestSendStatus:
    async def test_sends_status_response_with_previous_event(self, emitter, send):
        previous = {"eventName": "STATUS_REQUEST", "eventData": {}}

        ok = await emitter.send_status(StatusCode.OK, previous_event=previous)

        assert ok is True
        send.assert_awaited_once_with("STATUS_RESPONSE", {"statusCode": "OK"}, previous)

    async def test_offline_with_message(self, emitter, send):
        await emitter.send_status(StatusCode.OFFLINE, "shutting down")

        send.assert_awaited_once_with(
            "STATUS_RESPONSE",
            {"statusCode": "OFFLINE", "errorMessage": "shutting down"},
            None,
        )

    async def test_send_failure_is_swallowed(self, emitter, send):
        send.side_effect = ConnectionError("link detached")

        ok = await emitter.send_status(StatusCode.OK)

        assert ok is False


class TestSendVersion:
    async def test_sends_version_payload(self, emitter, send):
        await emitter.send_version()

        send.assert_awaited_once_with(
            "VERSION_RESPONSE",
            {"release": "2", "patch": "3", "hotfix": "1"},
            None,
        )

    async def test_send_failure_is_swallowed(self, emitter, send):
        send.side_effect = RuntimeError("producer closed")

        assert await emitter.send_version() is False


class TestSendError:
    async def test_sends_error_status_with_cause(self, emitter, send):
        cause = {"eventName": "ORDER_PLACED", "eventData": {"orderId": 1}}

        await emitter.send_error(["bad order"], cause)

        send.assert_awaited_once_with(
            "STATUS_RESPONSE",
            {"statusCode": "ERROR", "errorMessage": ["bad order"]},
            cause,
        )
