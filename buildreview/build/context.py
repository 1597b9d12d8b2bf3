"""Build context: the object a build script drives.

A build script is a Python file defining ``build(context)`` (plain or
``async``). It runs with the source directory as current directory, reaches
the platform tools through the context (``context.xcode``,
``context.android``...) and must run at least one build action.
"""

import contextlib
import importlib.util
import inspect
import uuid
from collections.abc import Callable, Iterable, Mapping
from os import PathLike
from pathlib import Path
from typing import Any

from buildreview.build.registry import ToolRegistry, ToolSpec
from buildreview.core.config.settings import Settings, get_settings
from buildreview.core.config.toolchain import ToolchainConfig
from buildreview.core.exceptions.errors import NoActionExecutedError, ValidationError
from buildreview.core.logger.logger import get_logger
from buildreview.models.artifact import ArtifactStore
from buildreview.models.issue import Issue, IssueStore
from buildreview.tools import BUILTIN_TOOLS
from buildreview.tools.base import BaseTool

logger = get_logger(__name__)

BUILD_FUNCTION = "build"


class BuildContext:
    """One build run: its issues, artifacts and tool instances."""

    def __init__(
        self,
        action: str = "review",
        *,
        work_directory: str | PathLike[str] | None = None,
        source_directory: str | PathLike[str] | None = None,
        lines_around_related: int | None = None,
        toolchains: ToolchainConfig | None = None,
        settings: Settings | None = None,
        custom_tools: Iterable[ToolSpec] | None = None,
        **options: Any,
    ) -> None:
        """Initialize the context.

        Args:
            action: What the run is for (``review``, ``archive``...).
            work_directory: Where logs, derived data and artifacts go.
            source_directory: Checked out sources.
            lines_around_related: Context window used by the diff filter.
            toolchains: Configured Xcode installs.
            settings: Application settings (global settings when omitted).
            custom_tools: User tools, as classes or import strings
                (``settings.build.custom_tools`` when omitted).
            **options: Extra values for build scripts (branch, tag...).

        Raises:
            ValidationError: If a directory is missing or a tool name collides.
        """
        for field_name, value in (("work_directory", work_directory), ("source_directory", source_directory)):
            if value is None or str(value) == "":
                raise ValidationError(f"{field_name} is required", field=field_name)

        self._settings = settings if settings is not None else get_settings()
        self._action = action
        self._work_directory = Path(work_directory).expanduser().absolute()
        self._source_directory = Path(source_directory).expanduser().absolute()
        self._options = dict(options)
        self._lines_around_related = (
            lines_around_related
            if lines_around_related is not None
            else self._settings.build.lines_around_related
        )
        self._toolchains = toolchains if toolchains is not None else ToolchainConfig()
        self._issues = IssueStore(self._source_directory)
        self._artifacts = ArtifactStore()
        self._action_executed = False

        if custom_tools is None:
            custom_tools = self._settings.build.custom_tools
        self._registry = ToolRegistry(BUILTIN_TOOLS, custom_tools, reserved=self.reserved_names())
        self._tool_instances: dict[str, BaseTool] = {}

    @classmethod
    def reserved_names(cls) -> set[str]:
        """Attribute names tools cannot use."""
        return {name for name in dir(cls) if not name.startswith("_")}

    def __getattr__(self, name: str) -> BaseTool:
        registry = self.__dict__.get("_registry")
        if registry is not None and name in registry:
            return self.tool(name)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self.__dict__.get("_registry", ())))

    @property
    def action(self) -> str:
        return self._action

    @property
    def work_directory(self) -> Path:
        return self._work_directory

    @property
    def source_directory(self) -> Path:
        return self._source_directory

    @property
    def options(self) -> dict[str, Any]:
        return dict(self._options)

    @property
    def lines_around_related(self) -> int:
        return self._lines_around_related

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def toolchains(self) -> ToolchainConfig:
        return self._toolchains

    @property
    def issues(self) -> tuple[Issue, ...]:
        return self._issues.all()

    @property
    def artifacts(self) -> tuple[Path, ...]:
        return self._artifacts.all()

    @property
    def error_found(self) -> bool:
        return self._issues.has_error()

    @property
    def action_executed(self) -> bool:
        return self._action_executed

    @property
    def tool_names(self) -> list[str]:
        return self._registry.list_tools()

    def mark_action_executed(self) -> None:
        """Record that a build action ran."""
        self._action_executed = True

    def add_issue(self, issue: Issue | Mapping[str, Any]) -> Issue:
        """Add an issue, merging it with an identical one already reported."""
        return self._issues.add(issue)

    def add_artifacts(self, *artifacts: Any) -> None:
        """Register artifact paths (or iterables of paths)."""
        self._artifacts.add(*artifacts)

    def tool(self, identifier: str) -> BaseTool:
        """Instance of a registered tool, created on first use."""
        tool_class = self._registry.get(identifier)
        if tool_class is None:
            raise ValidationError(f"Unknown tool {identifier}", field=identifier)
        if identifier not in self._tool_instances:
            self._tool_instances[identifier] = tool_class(self)
        return self._tool_instances[identifier]

    def resolve_source_path(self, path: str | PathLike[str]) -> Path:
        """Resolve a path given by a build script against the source directory."""
        path = Path(path)
        return path if path.is_absolute() else self._source_directory / path

    @staticmethod
    def make_identifier_updater(replacements: Mapping[str, str]) -> Callable[[str], str]:
        """Function rewriting identifiers (e.g. bundle identifiers) by prefix.

        ``{"com.example": "com.example.beta"}`` maps ``com.example`` and
        ``com.example.widget`` but leaves ``com.examples`` untouched.
        """
        def update(value: str) -> str:
            for to_replace, replacement in replacements.items():
                if value == to_replace or value.startswith(f"{to_replace}."):
                    value = replacement + value[len(to_replace):]
            return value

        return update

    async def run_script(self, build_script_path: str | PathLike[str]) -> None:
        """Load a build script and run its ``build(context)`` function.

        Raises:
            ValidationError: If the script does not define ``build``.
        """
        build_script_path = Path(build_script_path)
        module_name = f"buildreview_build_script_{uuid.uuid4().hex}"
        spec = importlib.util.spec_from_file_location(module_name, build_script_path)
        if spec is None or spec.loader is None:
            raise ValidationError(f"Cannot load build script {build_script_path}", field="build_script_path")

        logger.info(f"Building with script {build_script_path}")
        with contextlib.chdir(self._source_directory):
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)

            build = getattr(module, BUILD_FUNCTION, None)
            if not callable(build):
                raise ValidationError(
                    f"Build script {build_script_path} must define {BUILD_FUNCTION}(context)",
                    field="build_script_path",
                )
            result = build(self)
            if inspect.isawaitable(result):
                await result

    @classmethod
    async def build_project(
        cls,
        action: str,
        build_script_path: str | PathLike[str],
        **options: Any,
    ) -> "BuildContext":
        """Create a context, run a build script in it and return it.

        Args:
            action: What the run is for (``review``, ``archive``...).
            build_script_path: Build script to run.
            **options: BuildContext keyword arguments.

        Raises:
            ValidationError: If the script cannot be found.
            NoActionExecutedError: If the script did not run any build action.
        """
        build_script_path = Path(build_script_path)
        if not build_script_path.exists():
            raise ValidationError(f"Cannot find build script {build_script_path}", field="build_script_path")

        context = cls(action, **options)
        await context.run_script(build_script_path)
        if not context.action_executed:
            raise NoActionExecutedError(str(build_script_path))
        return context
