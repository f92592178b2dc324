"""Tests for Event Hub connection diagnostics helpers."""

import logging

from hubrelay.common.eventhub.diagnostics import (
    extract_namespace_host,
    log_connection_attempt_details,
    log_connection_diagnostics,
    mask_connection_string,
    parse_connection_string,
)

CONN = (
    "Endpoint=sb://myhub.servicebus.windows.net/;"
    "SharedAccessKeyName=RootManageSharedAccessKey;"
    "SharedAccessKey=abc123secret=;"
    "EntityPath=status-events"
)


class TestMaskConnectionString:
    def test_masks_key(self):
        masked = mask_connection_string(CONN)

        assert "abc123secret" not in masked
        assert "SharedAccessKey=***MASKED***" in masked
        assert "SharedAccessKeyName=RootManageSharedAccessKey" in masked

    def test_empty_string(self):
        assert mask_connection_string("") == ""


class TestParseConnectionString:
    def test_splits_components(self):
        parts = parse_connection_string(CONN)

        assert parts["Endpoint"] == "sb://myhub.servicebus.windows.net/"
        assert parts["SharedAccessKey"] == "abc123secret="
        assert parts["EntityPath"] == "status-events"

    def test_empty_string(self):
        assert parse_connection_string("") == {}

    def test_extract_namespace_host(self):
        assert extract_namespace_host(CONN) == "myhub.servicebus.windows.net"

    def test_extract_namespace_host_missing_endpoint(self):
        assert extract_namespace_host("SharedAccessKey=x") is None


class TestLogging:
    def test_diagnostics_never_log_key(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="hubrelay.common.eventhub.diagnostics"):
            log_connection_diagnostics(CONN, "status-events", "1")

        assert "abc123secret" not in caplog.text

    def test_warns_on_entity_path_mismatch(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="hubrelay.common.eventhub.diagnostics"):
            log_connection_diagnostics(CONN, "other-hub", "1")

        assert any(
            r.levelno == logging.WARNING and "does not match" in r.getMessage()
            for r in caplog.records
        )

    def test_missing_ca_bundle_logged_as_error(self, caplog, tmp_path):
        missing = str(tmp_path / "missing.pem")

        with caplog.at_level(logging.DEBUG, logger="hubrelay.common.eventhub.diagnostics"):
            log_connection_attempt_details("hub", "AmqpOverWebsocket", {"connection_verify": missing})

        assert any(r.levelno == logging.ERROR for r in caplog.records)
