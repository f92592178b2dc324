"""Tests for the envelope codec and Version parsing."""

import json

import pytest
from pydantic import ValidationError

from hubrelay.core.errors import ConfigurationError
from hubrelay.relay.envelope import Envelope, Version, decode, encode


# =============================================================================
# encode
# =============================================================================


class TestEncode:
    def test_wraps_name_and_data_in_body(self):
        wire = encode("ORDER_PLACED", {"orderId": 42}, "billing")

        assert wire == {
            "body": {
                "eventName": "ORDER_PLACED",
                "eventData": {"orderId": 42, "sender": "billing"},
            }
        }

    def test_does_not_modify_caller_data(self):
        data = {"orderId": 42}

        encode("ORDER_PLACED", data, "billing", {"eventName": "X", "eventData": {}})

        assert data == {"orderId": 42}

    def test_none_data_carries_only_sender(self):
        wire = encode("PING", None, "billing")

        assert wire["body"]["eventData"] == {"sender": "billing"}

    def test_attaches_previous_event(self):
        previous = {"eventName": "STATUS_REQUEST", "eventData": {"sender": "monitor"}}

        wire = encode("STATUS_RESPONSE", {"statusCode": "OK"}, "billing", previous)

        assert wire["body"]["eventData"]["previousEvent"] == previous

    def test_empty_previous_event_is_omitted(self):
        wire = encode("STATUS_RESPONSE", {"statusCode": "OK"}, "billing", {})

        assert "previousEvent" not in wire["body"]["eventData"]

    def test_sender_overrides_caller_field(self):
        wire = encode("PING", {"sender": "spoofed"}, "billing")

        assert wire["body"]["eventData"]["sender"] == "billing"

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            encode("", {}, "billing")


# =============================================================================
# decode
# =============================================================================


class TestDecode:
    def test_round_trip(self):
        previous = {"eventName": "STATUS_REQUEST", "eventData": {}}
        wire = encode("ORDER_PLACED", {"orderId": 42}, "billing", previous)

        envelope = decode(wire)

        assert envelope.event_name == "ORDER_PLACED"
        assert envelope.event_data["orderId"] == 42
        assert envelope.sender == "billing"
        assert envelope.previous_event == previous

    def test_accepts_json_bytes(self):
        raw = json.dumps(encode("PING", {"n": 1}, "svc")).encode("utf-8")

        envelope = decode(raw)

        assert envelope.event_name == "PING"
        assert envelope.event_data == {"n": 1, "sender": "svc"}

    def test_accepts_bare_body(self):
        envelope = decode({"eventName": "PING", "eventData": {"n": 1}})

        assert envelope.event_name == "PING"
        assert envelope.sender is None

    def test_missing_event_data_is_empty(self):
        envelope = decode({"body": {"eventName": "PING"}})

        assert envelope.event_data == {}

    def test_non_mapping_event_data_is_empty(self):
        envelope = decode({"body": {"eventName": "PING", "eventData": [1, 2]}})

        assert envelope.event_data == {}

    @pytest.mark.parametrize(
        "wire",
        [
            None,
            {},
            {"body": None},
            {"body": "text"},
            {"body": {"eventData": {}}},
            {"body": {"eventName": "", "eventData": {}}},
            {"body": {"eventName": "   ", "eventData": {}}},
            b"\xff\xfe",
            b"not json",
            "[1, 2, 3]",
        ],
    )
    def test_invalid_messages_decode_to_none(self, wire):
        assert decode(wire) is None

    def test_to_body_is_independent_copy(self):
        envelope = decode({"body": {"eventName": "PING", "eventData": {"n": 1}}})

        body = envelope.to_body()
        body["eventData"]["n"] = 2

        assert envelope.event_data["n"] == 1

    def test_envelope_is_frozen(self):
        envelope = Envelope(event_name="PING")

        with pytest.raises(ValidationError):
            envelope.event_name = "PONG"


# =============================================================================
# Version
# =============================================================================


class TestVersion:
    def test_parse_three_parts(self):
        version = Version.parse("2.3.1")

        assert version.to_payload() == {"release": "2", "patch": "3", "hotfix": "1"}
        assert str(version) == "2.3.1"

    @pytest.mark.parametrize("raw", ["", "2", "2.3", "2.3.1.4", "2..1", ".3.1"])
    def test_malformed_version_rejected(self, raw):
        with pytest.raises(ConfigurationError):
            Version.parse(raw)

    def test_non_string_rejected(self):
        with pytest.raises(ConfigurationError):
            Version.parse(231)

    def test_payload_is_fresh_each_call(self):
        version = Version.parse("1.0.0")

        payload = version.to_payload()
        payload["extra"] = True

        assert "extra" not in version.to_payload()
