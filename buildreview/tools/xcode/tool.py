"""
Xcode Tool - drives ``xcodebuild`` for iOS projects.

Every action streams the xcodebuild output to a timestamped log file in the
work directory and through a LogLineClassifier, which turns error blocks
into issues on the build context.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

from buildreview.core.config.toolchain import DEFAULT_VERSION
from buildreview.core.exceptions.errors import (
    BuildActionFailure,
    CommandError,
    ToolchainResolutionError,
    ValidationError,
)
from buildreview.core.logger.logger import get_logger
from buildreview.core.utils.process import OutputStream, run_command
from buildreview.models.issue import IssueKind
from buildreview.tools.base import BaseTool
from buildreview.tools.xcode.archive import ArchiveAssembler
from buildreview.tools.xcode.classifier import LogLineClassifier
from buildreview.tools.xcode.static_analyzer import collect_analyzer_issues

if TYPE_CHECKING:
    from buildreview.build.context import BuildContext

logger = get_logger(__name__)

PROJECT_FLAGS: dict[str, str] = {
    ".xcodeproj": "-project",
    ".xcworkspace": "-workspace",
}
XCODEBUILD_PATH = Path("Contents", "Developer", "usr", "bin", "xcodebuild")

DEVICE_SDK = "iphoneos"
SIMULATOR_SDK = "iphonesimulator"

COCOAPODS_WARNING_PREFIX = "[!] "


@dataclass
class XcodebuildInvocation:
    """One run of xcodebuild."""

    project_path: Path
    scheme: str
    sdk: str
    actions: list[str]
    xcode_path: Path
    log_path: Path
    classifier: LogLineClassifier
    destination: str | None = None
    archive_path: Path | None = None
    exit_code: int | None = None

    @property
    def new_error_found(self) -> bool:
        return self.classifier.new_error_found


class XcodeTool(BaseTool):
    """Build actions for Xcode projects and workspaces."""

    name = "xcode"
    description = "xcodebuild analyze/test/archive"

    def __init__(self, context: "BuildContext") -> None:
        super().__init__(context)
        self.xcode_version = DEFAULT_VERSION

    def use_xcode_version(self, version: str | float) -> None:
        """Select the Xcode used by the following actions.

        Args:
            version: A version key of the toolchain configuration, or ``"default"``.

        Raises:
            ToolchainResolutionError: If the version is not configured.
        """
        version = str(version)
        if not self.context.toolchains.has_version(version):
            raise ToolchainResolutionError(
                f"Xcode version {version} is not configured",
                version=version,
            )
        self.xcode_version = version

    def xcode_path(self) -> Path:
        """Install path of the selected Xcode."""
        return self.context.toolchains.resolve(self.xcode_version)

    def xcodebuild_path(self, xcode_path: Path) -> Path:
        path = xcode_path / XCODEBUILD_PATH
        if not path.exists():
            raise ToolchainResolutionError(
                f"Cannot find xcodebuild at {path}",
                version=self.xcode_version,
                path=str(path),
            )
        return path

    async def analyze(self, project_path: str | Path, scheme: str) -> None:
        """Run the static analyzer and report its findings as static analysis issues."""
        self.context.mark_action_executed()
        project_path = self.context.resolve_source_path(project_path)

        await self.xcodebuild(project_path, scheme=scheme, actions=["analyze"], sdk=DEVICE_SDK)

        issues = collect_analyzer_issues(self.context.work_directory, project_path.stem)
        for issue in issues:
            self.context.add_issue(issue)
        logger.info(f"Static analyzer reported {len(issues)} issue(s)")

    async def test(
        self,
        project_path: str | Path,
        scheme: str,
        destination: str | Sequence[str],
    ) -> None:
        """Run the tests on each destination in turn.

        A failing destination does not stop the following ones; the
        failures are raised together once every destination ran.

        Raises:
            BuildActionFailure: If one or more destinations failed.
        """
        self.context.mark_action_executed()
        project_path = self.context.resolve_source_path(project_path)

        destinations = [destination] if isinstance(destination, str) else list(destination)
        if not destinations:
            raise ValidationError("At least one test destination is required", field="destination")

        failures: dict[str, BuildActionFailure] = {}
        for target in destinations:
            await self.quit_simulator()
            try:
                await self.xcodebuild(
                    project_path,
                    scheme=scheme,
                    actions=["test"],
                    sdk=SIMULATOR_SDK,
                    destination=target,
                )
            except BuildActionFailure as e:
                logger.error(f"Tests failed on {target}: {e}")
                failures[target] = e
            finally:
                await self.quit_simulator()

        if failures:
            raise BuildActionFailure(
                f"Tests failed on {len(failures)} of {len(destinations)} destination(s)",
                action="test",
                details={"destinations": list(failures)},
            )

    async def archive(self, project_path: str | Path, scheme: str) -> list[Path]:
        """Archive the project and package it.

        Produces ``<project>.ipa`` plus one zip per application and dSYM bundle.

        Returns:
            The artifacts registered on the context.

        Raises:
            BuildActionFailure: If the archive build reported an error.
        """
        self.context.mark_action_executed()
        project_path = self.context.resolve_source_path(project_path)
        work_directory = self.context.work_directory
        archive_path = work_directory / f"{project_path.stem}.xcarchive"

        invocation = await self.xcodebuild(
            project_path,
            scheme=scheme,
            actions=["archive"],
            sdk=DEVICE_SDK,
            archive_path=archive_path,
        )
        if invocation.new_error_found or self.context.error_found:
            raise BuildActionFailure(
                "An error was found while building the archive",
                action="archive",
                exit_code=invocation.exit_code,
                log_path=str(invocation.log_path),
            )

        assembler = ArchiveAssembler(archive_path, work_directory, project_path.stem)
        artifacts = await asyncio.to_thread(assembler.assemble)
        self.context.add_artifacts(artifacts)
        return artifacts

    async def install_pods(self) -> None:
        """Run ``pod install`` in the source directory.

        CocoaPods warnings (``[!] ...`` on stderr) become warning issues.
        """
        source_directory = self.context.source_directory
        if not (source_directory / "Podfile").exists():
            raise ValidationError("The project does not use CocoaPods (no Podfile)", field="Podfile")

        if (source_directory / "Gemfile").exists():
            await run_command(["bundle", "install"], cwd=source_directory)
            command = ["bundle", "exec", "pod", "install"]
        else:
            command = ["pod", "install"]
            lock_path = source_directory / "Podfile.lock"
            if lock_path.exists():
                lock = yaml.safe_load(lock_path.read_text(encoding="utf-8")) or {}
                if lock.get("COCOAPODS"):
                    command = ["pod", f"_{lock['COCOAPODS']}_", "install"]

        def on_line(stream: OutputStream, line: str) -> None:
            if stream is OutputStream.ERROR and line.startswith(COCOAPODS_WARNING_PREFIX):
                self.context.add_issue(
                    {
                        "kind": IssueKind.WARNING,
                        "description": line[len(COCOAPODS_WARNING_PREFIX):].strip(),
                    }
                )

        log_path = self.new_log_path("pod")
        with self.log_tail_on_error(log_path):
            exit_code = await self.run_logged(command, log_path, on_line, cwd=source_directory)
            if exit_code != 0:
                raise BuildActionFailure(
                    f"{' '.join(command)} failed with code {exit_code}",
                    action="install_pods",
                    exit_code=exit_code,
                    log_path=str(log_path),
                )

    async def quit_simulator(self) -> None:
        """Quit the simulator application so each test run starts from a clean one."""
        app_name = self.context.settings.build.simulator_app
        try:
            await run_command(
                ["osascript", "-e", f'quit app "{app_name}"'],
                allow_errors=True,
            )
        except CommandError as e:
            logger.warning(f"Could not quit {app_name}: {e}")

    def build_arguments(
        self,
        xcodebuild_path: Path,
        project_path: Path,
        scheme: str,
        actions: list[str],
        sdk: str,
        destination: str | None = None,
        archive_path: Path | None = None,
    ) -> list[str]:
        """Command line of one xcodebuild run.

        Raises:
            ValidationError: If the project is neither a project nor a workspace.
        """
        project_flag = PROJECT_FLAGS.get(project_path.suffix)
        if project_flag is None:
            raise ValidationError(
                f"Unknown project type for {project_path}",
                field="project_path",
            )

        args = [
            str(xcodebuild_path),
            project_flag, str(project_path),
            "-scheme", scheme,
            "-sdk", sdk,
            "-derivedDataPath", str(self.context.work_directory),
        ]
        if archive_path:
            args.extend(["-archivePath", str(archive_path)])
        if destination:
            args.extend(["-destination", destination])
        args.extend(actions)
        return args

    async def xcodebuild(
        self,
        project_path: Path,
        scheme: str,
        actions: list[str],
        sdk: str,
        destination: str | None = None,
        archive_path: Path | None = None,
    ) -> XcodebuildInvocation:
        """Run xcodebuild once, classifying its output.

        A non-zero exit is only escalated when no error was classified: any
        classified error is already reported as an issue.

        Raises:
            ToolchainResolutionError: If the selected Xcode cannot be found.
            ValidationError: If the project type is unknown.
            BuildActionFailure: On a non-zero exit without classified error.
        """
        xcode_path = self.xcode_path()
        args = self.build_arguments(
            self.xcodebuild_path(xcode_path),
            project_path,
            scheme=scheme,
            actions=actions,
            sdk=sdk,
            destination=destination,
            archive_path=archive_path,
        )

        invocation = XcodebuildInvocation(
            project_path=project_path,
            scheme=scheme,
            sdk=sdk,
            actions=actions,
            xcode_path=xcode_path,
            log_path=self.new_log_path("xcodebuild"),
            classifier=LogLineClassifier(self.context.add_issue),
            destination=destination,
            archive_path=archive_path,
        )

        logger.info(f"xcodebuild {' '.join(actions)} {project_path.name} (scheme {scheme})")
        with self.log_tail_on_error(invocation.log_path):
            invocation.exit_code = await self.run_logged(
                args,
                invocation.log_path,
                invocation.classifier.process_line,
                cwd=self.context.source_directory,
            )
            invocation.classifier.flush()

            if invocation.exit_code != 0 and not invocation.new_error_found:
                raise BuildActionFailure(
                    f"Unknown error ({invocation.exit_code}) happened while running xcodebuild",
                    action=" ".join(actions),
                    exit_code=invocation.exit_code,
                    log_path=str(invocation.log_path),
                )
        return invocation
