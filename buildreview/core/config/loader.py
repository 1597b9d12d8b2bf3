"""YAML configuration files."""

from pathlib import Path
from typing import Any

import yaml

from buildreview.core.exceptions.errors import ConfigurationError


class ConfigLoader:
    """Reads one YAML mapping and gives access to its values and sections."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = config_path
        self._config: dict[str, Any] = {}

    def load(self, path: Path | None = None) -> dict[str, Any]:
        """Read the YAML file (``config_path`` unless ``path`` is given).

        An empty file loads as an empty mapping, and so does a loader with
        no path at all.

        Raises:
            ConfigurationError: If the file is missing, is not valid YAML,
                or does not hold a mapping at top level.
        """
        source = path or self.config_path
        if source is None:
            return {}

        try:
            text = Path(source).read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Configuration file not found: {source}",
                config_key=str(source),
            ) from e

        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {source}",
                config_key=str(source),
                details={"error": str(e)},
            ) from e

        if document is None:
            document = {}
        if not isinstance(document, dict):
            raise ConfigurationError(
                f"Configuration file {source} must hold a mapping, not a {type(document).__name__}",
                config_key=str(source),
            )
        self._config = document
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """Value at a dotted key such as ``build.base_directory``, or ``default``."""
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_section(self, section: str) -> dict[str, Any]:
        """Top level mapping named ``section``; empty when absent.

        Raises:
            ConfigurationError: If the section exists but is not a mapping.
        """
        value = self._config.get(section)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ConfigurationError(
                f"Configuration section {section} must be a mapping",
                config_key=section,
            )
        return value
