"""Toolchain (Xcode) version configuration.

The versions file maps a version key to an install path, plus an optional
``default`` entry which may itself be a version key or a direct path::

    default: "9.4"
    "9.4": /Applications/Xcode-9.4.app
    "10.1": /Applications/Xcode-10.1.app
"""

import subprocess
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from buildreview.core.config.loader import ConfigLoader
from buildreview.core.exceptions.errors import ToolchainResolutionError

DEFAULT_VERSION = "default"
FALLBACK_TOOLCHAIN_PATH = "/Applications/Xcode.app"
DEVELOPER_DIR_SUFFIX = "/Contents/Developer"

# Lazy logger to avoid circular import
_logger = None


def _get_logger():
    global _logger
    if _logger is None:
        from buildreview.core.logger.logger import get_logger
        _logger = get_logger(__name__)
    return _logger


class ToolchainConfig(BaseModel):
    """Configured toolchain installs, keyed by version."""

    versions: dict[str, str] = Field(
        default_factory=dict,
        description="Version key -> toolchain install path",
    )
    default: str | None = Field(
        default=None,
        description="Default version key, or a direct install path",
    )

    @classmethod
    def from_mapping(cls, raw: dict[Any, Any]) -> "ToolchainConfig":
        """Build a config from a raw YAML mapping.

        Keys are stringified since YAML reads ``6.2`` as a float.
        """
        versions: dict[str, str] = {}
        default: str | None = None
        for key, value in raw.items():
            if value is None:
                continue
            if str(key) == DEFAULT_VERSION:
                default = str(value)
            else:
                versions[str(key)] = str(value)
        return cls(versions=versions, default=default)

    def has_version(self, version: str) -> bool:
        """Check whether a version key (or the default marker) is configured."""
        if version == DEFAULT_VERSION:
            return self.default is not None
        return version in self.versions

    def resolve(self, version: str = DEFAULT_VERSION) -> Path:
        """Resolve a version key to an existing toolchain install path.

        Args:
            version: Version key, or ``"default"``.

        Returns:
            Path of the toolchain install.

        Raises:
            ToolchainResolutionError: If the version is not configured or
                the configured path does not exist.
        """
        if version == DEFAULT_VERSION:
            if not self.default:
                raise ToolchainResolutionError(
                    "Either select an explicit toolchain version in the build script, "
                    "or set a default version in the toolchain configuration",
                    version=version,
                )
            raw_path = self.versions.get(self.default, self.default)
        else:
            raw_path = self.versions.get(version)
            if raw_path is None:
                raise ToolchainResolutionError(
                    f"Toolchain version {version} is not configured",
                    version=version,
                )

        path = Path(raw_path).expanduser()
        if not path.exists():
            raise ToolchainResolutionError(
                f"{path} does not point to an existing toolchain",
                version=version,
                path=str(path),
            )
        return path


def detect_active_toolchain() -> str:
    """Return the install path of the active Xcode, as reported by xcode-select."""
    try:
        completed = subprocess.run(
            ["xcode-select", "-p"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return FALLBACK_TOOLCHAIN_PATH

    path = completed.stdout.strip() if completed.returncode == 0 else ""
    if path.endswith(DEVELOPER_DIR_SUFFIX):
        path = path[: -len(DEVELOPER_DIR_SUFFIX)]
    return path or FALLBACK_TOOLCHAIN_PATH


def load_toolchain_config(path: Path) -> ToolchainConfig:
    """Load the toolchain versions file, creating a default one if absent.

    Args:
        path: Location of the versions file.

    Returns:
        Parsed ToolchainConfig.
    """
    if not path.exists():
        default_path = detect_active_toolchain()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            yaml.safe_dump({DEFAULT_VERSION: default_path}, default_flow_style=False),
            encoding="utf-8",
        )
        _get_logger().info(f"Created toolchain configuration {path} (default: {default_path})")

    return ToolchainConfig.from_mapping(ConfigLoader(path).load())
