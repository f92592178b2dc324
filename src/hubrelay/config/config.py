"""Relay configuration from YAML file.

Loads the ``eventHub`` section and host application metadata:

    eventHub:
      connectionString: ${EVENTHUB_CONNECTION_STRING}
      eventHubName: status-events
      consumerGroup: $Default      # optional
      partitionId: "1"             # optional
      watermarkPath: ./.last       # optional
      startingPosition: "-1"       # optional, used while no watermark is stored

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
"""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from importlib import metadata
from pathlib import Path
from typing import Any, Dict

import yaml

from hubrelay.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_SECTION = "eventHub"
CONNECTION_STRING_KEY = "connectionString"
EVENTHUB_NAME_KEY = "eventHubName"

DEFAULT_CONSUMER_GROUP = "$Default"
DEFAULT_PARTITION_ID = "1"
DEFAULT_WATERMARK_PATH = "./.last"
DEFAULT_STARTING_POSITION = "-1"

# Takes precedence over the YAML value so secrets can stay out of the file
CONNECTION_STRING_ENV = "EVENTHUB_CONNECTION_STRING"

_PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}:]+)[^}]*\}")


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def load_config(config_path: Path | str) -> Dict[str, Any]:
    """Load a relay config file with environment variables expanded.

    Raises:
        ConfigurationError: If the file does not exist or is not a mapping
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    data = load_yaml(path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")

    logger.debug("Loaded configuration", extra={"path": str(path)})
    return _expand_env_vars(data)


def _require_str(section: Mapping[str, Any], key: str, what: str) -> str:
    if key not in section:
        raise ConfigurationError(f"No {key} in {what}")
    value = section[key]
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{key} in {what} must be a non-empty string")
    # Left behind by _expand_env_vars when the variable is not set
    unresolved = _PLACEHOLDER_PATTERN.search(value)
    if unresolved:
        raise ConfigurationError(
            f"{key} in {what} references unset environment variable {unresolved.group(1)}"
        )
    return value.strip()


@dataclass(frozen=True)
class EventHubSettings:
    """Validated ``eventHub`` section."""

    connection_string: str
    eventhub_name: str
    consumer_group: str = DEFAULT_CONSUMER_GROUP
    partition_id: str = DEFAULT_PARTITION_ID
    watermark_path: str = DEFAULT_WATERMARK_PATH
    starting_position: str = DEFAULT_STARTING_POSITION

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "EventHubSettings":
        """Build settings from a full config mapping.

        Raises:
            ConfigurationError: If the section, connectionString or eventHubName is missing
        """
        if not isinstance(config, Mapping) or CONFIG_SECTION not in config:
            raise ConfigurationError("No configuration for EventHub was found!")

        section = config[CONFIG_SECTION]
        if not isinstance(section, Mapping):
            raise ConfigurationError(f"'{CONFIG_SECTION}' config must be a mapping")

        connection_string = _require_str(section, CONNECTION_STRING_KEY, "EventHub config")
        eventhub_name = _require_str(section, EVENTHUB_NAME_KEY, "EventHub config")

        env_conn = os.getenv(CONNECTION_STRING_ENV, "").strip()
        if env_conn:
            connection_string = env_conn

        return cls(
            connection_string=connection_string,
            eventhub_name=eventhub_name,
            consumer_group=str(section.get("consumerGroup", DEFAULT_CONSUMER_GROUP)),
            partition_id=str(section.get("partitionId", DEFAULT_PARTITION_ID)),
            watermark_path=str(section.get("watermarkPath", DEFAULT_WATERMARK_PATH)),
            starting_position=str(section.get("startingPosition", DEFAULT_STARTING_POSITION)),
        )


@dataclass(frozen=True)
class PackageInfo:
    """Host application metadata: declared name and dotted version."""

    name: str
    version: str

    @classmethod
    def from_mapping(cls, package_info: Mapping[str, Any]) -> "PackageInfo":
        if not isinstance(package_info, Mapping) or not (
            "name" in package_info and "version" in package_info
        ):
            raise ConfigurationError("No package info was found!")
        return cls(
            name=_require_str(package_info, "name", "package info"),
            version=_require_str(package_info, "version", "package info"),
        )

    @classmethod
    def from_distribution(cls, distribution: str) -> "PackageInfo":
        """Read name and version from an installed distribution's metadata."""
        try:
            meta = metadata.metadata(distribution)
        except metadata.PackageNotFoundError as e:
            raise ConfigurationError(
                f"Distribution '{distribution}' is not installed", cause=e
            ) from e
        return cls(name=meta["Name"], version=meta["Version"])


__all__ = [
    "CONFIG_SECTION",
    "EventHubSettings",
    "PackageInfo",
    "load_config",
    "load_yaml",
]
