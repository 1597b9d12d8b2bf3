"""
Android Tool - Gradle driven static analysis for Android projects.
"""

from pathlib import Path

from buildreview.core.exceptions.errors import BuildActionFailure
from buildreview.core.logger.logger import get_logger
from buildreview.core.utils.process import OutputStream
from buildreview.models.issue import Issue
from buildreview.tools.android.findbugs import parse_findbugs_report
from buildreview.tools.base import BaseTool

logger = get_logger(__name__)


class AndroidTool(BaseTool):
    """Runs Gradle analysis tasks and reads their reports."""

    name = "android"
    description = "Gradle FindBugs analysis"

    gradle_wrapper = "gradlew"

    def findbugs(self, project_path: str | Path, allow_missing: bool = False) -> list[Issue]:
        """Add the issues of an existing FindBugs report to the context."""
        found = parse_findbugs_report(
            project_path,
            base_directory=self.context.source_directory,
            allow_missing=allow_missing,
        )
        return [self.context.add_issue(issue) for issue in found]

    async def analyze(
        self,
        project_path: str | Path,
        task: str = "findbugs",
        allow_missing_report: bool = False,
    ) -> list[Issue]:
        """Run a Gradle FindBugs task on a project, then read its report.

        The task fails when it finds bugs; that failure is only escalated
        when the report holds no issue.

        Args:
            project_path: Gradle project directory, relative to the source directory.
            task: Gradle task producing the FindBugs report.
            allow_missing_report: Tolerate the absence of a report.

        Raises:
            BuildActionFailure: On a Gradle failure the report does not explain.
        """
        self.context.mark_action_executed()
        source_directory = self.context.source_directory
        command = [
            str(source_directory / self.gradle_wrapper),
            "-p", str(project_path),
            task,
        ]

        def on_line(stream: OutputStream, line: str) -> None:
            if stream is OutputStream.ERROR and line.strip():
                logger.debug(line)

        log_path = self.new_log_path("gradle")
        with self.log_tail_on_error(log_path):
            exit_code = await self.run_logged(command, log_path, on_line, cwd=source_directory)
            if exit_code == 0:
                issues = self.findbugs(project_path, allow_missing=allow_missing_report)
            else:
                issues = self.findbugs(project_path, allow_missing=True)
            if exit_code != 0 and not issues:
                raise BuildActionFailure(
                    f"Unknown error ({exit_code}) happened while running gradle {task}",
                    action="analyze",
                    exit_code=exit_code,
                    log_path=str(log_path),
                )

        logger.info(f"FindBugs reported {len(issues)} issue(s) for {project_path}")
        return issues
