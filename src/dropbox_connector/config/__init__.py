"""Configuration package for the Dropbox connector."""

from .settings import (
    DropboxSettings,
    ScheduleSettings,
    LoggingSettings,
    ServerSettings,
    AppSettings,
    get_settings,
    set_settings
)

from .schema import (
    ConnectorConfig,
    DropboxConfig,
    ScheduleConfig,
    EXAMPLE_CONFIG
)

from .loader import (
    ConfigLoader,
    ConfigurationError,
    load_config_from_env
)

__all__ = [
    "DropboxSettings",
    "ScheduleSettings",
    "LoggingSettings",
    "ServerSettings",
    "AppSettings",
    "get_settings",
    "set_settings",

    "ConnectorConfig",
    "DropboxConfig",
    "ScheduleConfig",
    "EXAMPLE_CONFIG",

    "ConfigLoader",
    "ConfigurationError",
    "load_config_from_env"
]
