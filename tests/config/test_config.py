"""Tests for YAML config loading, EventHubSettings and PackageInfo."""

from importlib import metadata
from unittest.mock import patch

import pytest

from hubrelay.config import EventHubSettings, PackageInfo, load_config, load_yaml
from hubrelay.config.config import _expand_env_vars
from hubrelay.core.errors import ConfigurationError

CONN = "Endpoint=sb://test.servicebus.windows.net/;SharedAccessKeyName=P;SharedAccessKey=secret"


# =============================================================================
# YAML loading
# =============================================================================


class TestLoadConfig:
    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "relay.yaml")

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "relay.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)

    def test_expands_environment_variables(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HUB_NAME", "status-events")
        path = tmp_path / "relay.yaml"
        path.write_text(
            "eventHub:\n"
            "  connectionString: plain\n"
            "  eventHubName: ${HUB_NAME}\n"
            "  consumerGroup: ${HUB_GROUP:-relay}\n"
        )

        config = load_config(path)

        assert config["eventHub"]["eventHubName"] == "status-events"
        assert config["eventHub"]["consumerGroup"] == "relay"

    def test_unset_variable_without_default_left_as_is(self):
        assert _expand_env_vars({"a": ["${HUBRELAY_TEST_UNSET_VAR}"]}) == {
            "a": ["${HUBRELAY_TEST_UNSET_VAR}"]
        }

    def test_load_yaml_missing_file_is_empty(self, tmp_path):
        assert load_yaml(tmp_path / "nope.yaml") == {}

    def test_load_yaml_empty_file_is_empty(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_yaml(path) == {}


# =============================================================================
# EventHubSettings
# =============================================================================


class TestEventHubSettings:
    def test_defaults(self):
        settings = EventHubSettings.from_config(
            {"eventHub": {"connectionString": CONN, "eventHubName": "status-events"}}
        )

        assert settings.connection_string == CONN
        assert settings.eventhub_name == "status-events"
        assert settings.consumer_group == "$Default"
        assert settings.partition_id == "1"
        assert settings.watermark_path == "./.last"
        assert settings.starting_position == "-1"

    def test_optional_keys(self):
        settings = EventHubSettings.from_config(
            {
                "eventHub": {
                    "connectionString": CONN,
                    "eventHubName": "status-events",
                    "consumerGroup": "relay",
                    "partitionId": 0,
                    "watermarkPath": "/var/lib/relay/.last",
                    "startingPosition": "@latest",
                }
            }
        )

        assert settings.consumer_group == "relay"
        assert settings.partition_id == "0"
        assert settings.watermark_path == "/var/lib/relay/.last"
        assert settings.starting_position == "@latest"

    def test_environment_overrides_connection_string(self, monkeypatch):
        monkeypatch.setenv("EVENTHUB_CONNECTION_STRING", "  from-env  ")

        settings = EventHubSettings.from_config(
            {"eventHub": {"connectionString": CONN, "eventHubName": "h"}}
        )

        assert settings.connection_string == "from-env"

    def test_environment_does_not_replace_missing_key(self, monkeypatch):
        monkeypatch.setenv("EVENTHUB_CONNECTION_STRING", "Endpoint=sb://env")

        with pytest.raises(ConfigurationError, match="No connectionString in EventHub config"):
            EventHubSettings.from_config({"eventHub": {"eventHubName": "hub1"}})

    def test_unset_placeholder_rejected(self, tmp_path):
        path = tmp_path / "relay.yaml"
        path.write_text(
            "eventHub:\n"
            "  connectionString: ${EVENTHUB_CONNECTION_STRING}\n"
            "  eventHubName: hub1\n"
        )

        with pytest.raises(ConfigurationError, match="unset environment variable EVENTHUB_CONNECTION_STRING"):
            EventHubSettings.from_config(load_config(path))

    def test_placeholder_resolved_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("EVENTHUB_CONNECTION_STRING", CONN)
        path = tmp_path / "relay.yaml"
        path.write_text(
            "eventHub:\n"
            "  connectionString: ${EVENTHUB_CONNECTION_STRING}\n"
            "  eventHubName: hub1\n"
        )

        settings = EventHubSettings.from_config(load_config(path))

        assert settings.connection_string == CONN

    @pytest.mark.parametrize(
        "config, message",
        [
            ({}, "No configuration for EventHub was found!"),
            ({"other": {}}, "No configuration for EventHub was found!"),
            ({"eventHub": "text"}, "must be a mapping"),
            ({"eventHub": {"eventHubName": "h"}}, "No connectionString in EventHub config"),
            ({"eventHub": {"connectionString": CONN}}, "No eventHubName in EventHub config"),
            (
                {"eventHub": {"connectionString": "", "eventHubName": "h"}},
                "must be a non-empty string",
            ),
            (
                {"eventHub": {"connectionString": CONN, "eventHubName": 7}},
                "must be a non-empty string",
            ),
        ],
    )
    def test_invalid_section(self, config, message):
        with pytest.raises(ConfigurationError, match=message):
            EventHubSettings.from_config(config)

    def test_is_immutable(self):
        settings = EventHubSettings(connection_string=CONN, eventhub_name="h")

        with pytest.raises(AttributeError):
            settings.eventhub_name = "other"


# =============================================================================
# PackageInfo
# =============================================================================


class TestPackageInfo:
    def test_from_mapping(self):
        info = PackageInfo.from_mapping({"name": "billing", "version": "2.3.1", "extra": 1})

        assert info == PackageInfo(name="billing", version="2.3.1")

    @pytest.mark.parametrize("value", [None, {}, {"name": "x"}, {"version": "1.0.0"}])
    def test_missing_fields_rejected(self, value):
        with pytest.raises(ConfigurationError, match="No package info was found!"):
            PackageInfo.from_mapping(value)

    def test_from_distribution(self):
        with patch(
            "hubrelay.config.config.metadata.metadata",
            return_value={"Name": "hubrelay", "Version": "1.0.0"},
        ):
            info = PackageInfo.from_distribution("hubrelay")

        assert info == PackageInfo(name="hubrelay", version="1.0.0")

    def test_from_missing_distribution_raises(self):
        with patch(
            "hubrelay.config.config.metadata.metadata",
            side_effect=metadata.PackageNotFoundError("hubrelay"),
        ):
            with pytest.raises(ConfigurationError, match="not installed"):
                PackageInfo.from_distribution("hubrelay")
