"""Configuration loading for the relay.

Load configuration:
    >>> from hubrelay.config import load_config, EventHubSettings
    >>> config = load_config("relay.yaml")
    >>> settings = EventHubSettings.from_config(config)
    >>> settings.eventhub_name
    'status-events'

Settings are merged in the following priority (highest to lowest):

1. EVENTHUB_CONNECTION_STRING environment variable (connection string only)
2. YAML configuration file, with ${VAR} expansion
3. Dataclass defaults
"""

from hubrelay.config.config import (
    CONFIG_SECTION,
    EventHubSettings,
    PackageInfo,
    load_config,
    load_yaml,
)

__all__ = [
    "CONFIG_SECTION",
    "EventHubSettings",
    "PackageInfo",
    "load_config",
    "load_yaml",
]
