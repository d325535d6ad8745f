"""Configuration models and loading."""

from offline_agent.config.exceptions import ConfigError, ConfigFileError, ConfigValidationError
from offline_agent.config.settings import (
    CONFIG_FILENAME,
    AgentSettings,
    CacheGenerations,
    NotificationAction,
    NotificationSettings,
    load_settings,
)

__all__ = [
    "CONFIG_FILENAME",
    "AgentSettings",
    "CacheGenerations",
    "ConfigError",
    "ConfigFileError",
    "ConfigValidationError",
    "NotificationAction",
    "NotificationSettings",
    "load_settings",
]
