"""Configuration management for buildreview."""

from buildreview.core.config.loader import ConfigLoader
from buildreview.core.config.settings import (
    BuildSettings,
    LoggingSettings,
    Settings,
    get_settings,
)
from buildreview.core.config.toolchain import (
    DEFAULT_VERSION,
    ToolchainConfig,
    load_toolchain_config,
)

__all__ = [
    "ConfigLoader",
    "Settings",
    "BuildSettings",
    "LoggingSettings",
    "get_settings",
    "DEFAULT_VERSION",
    "ToolchainConfig",
    "load_toolchain_config",
]
