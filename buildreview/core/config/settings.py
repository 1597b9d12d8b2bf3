"""Application settings using Pydantic Settings."""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from buildreview.core.config.loader import ConfigLoader

DEFAULT_CONFIG_FILE = Path("buildreview.yaml")


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="BUILDREVIEW_LOGGING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = Field(
        default="INFO",
        description="Log level",
    )
    format: str = Field(
        default="[%(name)s] %(message)s",
        description="Log format string",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    use_rich: bool = Field(
        default=True,
        description="Use Rich console for output",
    )

    @field_validator("level", mode="before")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("file", mode="before")
    @classmethod
    def validate_file(cls, v: str | None) -> Path | None:
        """Validate and convert file to Path."""
        if v is None or v == "":
            return None
        return Path(v)


class BuildSettings(BaseSettings):
    """Build orchestration settings."""

    model_config = SettingsConfigDict(
        env_prefix="BUILDREVIEW_BUILD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_directory: Path = Field(
        default_factory=lambda: Path.home() / ".buildreview",
        description="Root holding config/, custom/, source/ and work/ directories",
    )
    lines_around_related: int = Field(
        default=20,
        ge=0,
        description="Lines around a changed region an issue may sit to be reported",
    )
    toolchain_config: Path | None = Field(
        default=None,
        description="Toolchain versions file (defaults to <base>/config/xcode_versions.yml)",
    )
    simulator_app: str = Field(
        default="Simulator",
        description="Simulator application quit around each test destination",
    )
    log_tail_lines: int = Field(
        default=200,
        ge=0,
        description="Log lines shown to the operator when a build action fails",
    )
    custom_tools: list[str] = Field(
        default_factory=list,
        description="User tool classes as 'module:Class' import strings",
    )

    @field_validator("base_directory", "toolchain_config", mode="before")
    @classmethod
    def validate_path(cls, v: str | Path | None) -> Path | None:
        """Expand user directories in configured paths."""
        if v is None or v == "":
            return None
        return Path(v).expanduser()

    @property
    def toolchain_config_path(self) -> Path:
        """Resolved location of the toolchain versions file."""
        if self.toolchain_config:
            return self.toolchain_config
        return self.base_directory / "config" / "xcode_versions.yml"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="BUILDREVIEW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    build: BuildSettings = Field(default_factory=BuildSettings)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Settings instance with values from YAML.
        """
        loader = ConfigLoader(path)
        loader.load()

        return cls(
            logging=LoggingSettings(**loader.get_section("logging")),
            build=BuildSettings(**loader.get_section("build")),
        )

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from an explicit file or the default locations.

        Priority: explicit path > $BUILDREVIEW_CONFIG > ./buildreview.yaml > environment/defaults
        """
        if path is None:
            env_path = os.environ.get("BUILDREVIEW_CONFIG")
            if env_path:
                path = Path(env_path)
            elif DEFAULT_CONFIG_FILE.exists():
                path = DEFAULT_CONFIG_FILE

        if path is not None:
            return cls.from_yaml(path)

        return cls()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.load()
