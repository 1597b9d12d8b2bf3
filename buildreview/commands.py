"""Review and archive commands.

Fetching sources, computing diffs and posting review comments belong to
collaborators; they are reached through the ``IssueFilter`` and
``CommentPoster`` protocols.
"""

import shutil
from collections.abc import Sequence
from os import PathLike
from pathlib import Path
from typing import Any, Protocol

from rich.console import Console
from rich.markup import escape

from buildreview.build.context import BuildContext
from buildreview.core.exceptions.errors import ValidationError
from buildreview.core.logger.logger import get_logger
from buildreview.models.issue import Issue, IssueKind

logger = get_logger(__name__)

BUILD_SCRIPTS_DIRECTORY = Path("custom", "build")
FALLBACK_SCRIPT = "fallback.py"


class IssueFilter(Protocol):
    """Keeps the issues related to the changes under review."""

    def filter_issues(self, issues: Sequence[Issue], lines_around_related: int) -> Sequence[Issue]:
        ...


class CommentPoster(Protocol):
    """Posts one review comment per issue."""

    def post_comments(self, issues: Sequence[Issue]) -> None:
        ...


def find_build_script(base_directory: Path, host: str, owner: str, repo: str) -> Path:
    """Locate the build script of a repository.

    Looks for, in order: ``custom/build/<host>/<owner>/<repo>.py``,
    ``custom/build/<host>/fallback.py`` and ``custom/build/fallback.py``.

    Raises:
        ValidationError: If none of them exists.
    """
    scripts_directory = base_directory / BUILD_SCRIPTS_DIRECTORY
    candidates = [
        scripts_directory / host / owner / f"{repo}.py",
        scripts_directory / host / FALLBACK_SCRIPT,
        scripts_directory / FALLBACK_SCRIPT,
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    raise ValidationError(
        f"Cannot find a build script for the {owner}/{repo} repository on {host}",
        field="build_script_path",
        details={"searched": [str(candidate) for candidate in candidates]},
    )


def prepare_work_directory(work_directory: str | PathLike[str]) -> Path:
    """Empty (or create) the work directory of a run."""
    work_directory = Path(work_directory)
    if work_directory.exists():
        logger.warning(f"Removing {work_directory}")
        shutil.rmtree(work_directory)
    work_directory.mkdir(parents=True)
    return work_directory


async def review(
    build_script_path: str | PathLike[str],
    issue_filter: IssueFilter | None = None,
    comment_poster: CommentPoster | None = None,
    skip_comment_creation: bool = False,
    **context_options: Any,
) -> list[Issue]:
    """Build for a review and return the issues relevant to it.

    Args:
        build_script_path: Build script to run.
        issue_filter: Keeps only issues near the changed lines; every issue
            is relevant without one.
        comment_poster: Receives the relevant issues.
        skip_comment_creation: Do not post comments even with a poster.
        **context_options: BuildContext keyword arguments.
    """
    context = await BuildContext.build_project("review", build_script_path, **context_options)

    issues: Sequence[Issue] = context.issues
    if issue_filter is not None:
        issues = issue_filter.filter_issues(issues, lines_around_related=context.lines_around_related)
    if comment_poster is not None and not skip_comment_creation:
        comment_poster.post_comments(issues)
    return list(issues)


async def archive(build_script_path: str | PathLike[str], **context_options: Any) -> BuildContext:
    """Build for distribution; the artifacts are on the returned context."""
    return await BuildContext.build_project("archive", build_script_path, **context_options)


def report_issues(issues: Sequence[Issue], console: Console) -> bool:
    """Print the issues of a review.

    Returns:
        True when the review passes: no issue, or warnings only.
    """
    if not issues:
        console.print("[green]Great, no issue found[/]")
        return True

    console.print("[bold]Issues found:[/]")
    for issue in issues:
        console.print(f"- {escape(issue.to_display())}")

    if all(issue.kind is IssueKind.WARNING for issue in issues):
        console.print("[yellow]Warnings only - should be fixed but not considered a failure[/]")
        return True

    console.print("[red]Exiting in error[/]")
    return False
