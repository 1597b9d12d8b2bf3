"""Reading the clang static analyzer bundles written by ``xcodebuild analyze``.

Each bundle is a property list (XML or binary) holding a ``files`` table
and a ``diagnostics`` list whose locations index into that table.
"""

import plistlib
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from buildreview.core.exceptions.errors import ReportError
from buildreview.core.logger.logger import get_logger
from buildreview.models.issue import IssueKind

logger = get_logger(__name__)

# Newer Xcode versions suffix the intermediates directory
INTERMEDIATES_DIRECTORIES = ("Intermediates", "Intermediates.noindex")
ANALYZER_DIRECTORY = "StaticAnalyzer"


def find_analyzer_reports(derived_data_path: Path, project_basename: str) -> Iterator[Path]:
    """Yield the analyzer plists produced for one project.

    Args:
        derived_data_path: Derived data directory given to xcodebuild.
        project_basename: Project or workspace file name without extension.
    """
    for intermediates in INTERMEDIATES_DIRECTORIES:
        build_directory = derived_data_path / "Build" / intermediates / f"{project_basename}.build"
        if not build_directory.is_dir():
            continue
        for plist_path in sorted(build_directory.rglob("*.plist")):
            if ANALYZER_DIRECTORY in plist_path.relative_to(build_directory).parts[:-1]:
                yield plist_path


def parse_analyzer_report(plist_path: Path) -> list[dict[str, Any]]:
    """Extract static analysis issues from one analyzer plist.

    Bundles without a clang version, a file table or diagnostics yield nothing.

    Raises:
        ReportError: If the file is not a readable property list.
    """
    try:
        with open(plist_path, "rb") as f:
            content = plistlib.load(f)
    except (plistlib.InvalidFileException, ValueError, OSError) as e:
        raise ReportError(
            f"Cannot read static analyzer report {plist_path}: {e}",
            report_path=str(plist_path),
        ) from e

    if not isinstance(content, dict):
        return []
    files = content.get("files")
    diagnostics = content.get("diagnostics")
    if not content.get("clang_version") or not files or not diagnostics:
        return []

    issues = []
    for diagnostic in diagnostics:
        description = str(diagnostic.get("description", "")).strip()
        if not description:
            logger.warning(f"Skipping analyzer diagnostic without description in {plist_path}")
            continue
        location = diagnostic.get("location", {})
        file_index = int(location.get("file", -1))
        issues.append(
            {
                "kind": IssueKind.STATIC_ANALYSIS,
                "file_path": files[file_index] if 0 <= file_index < len(files) else None,
                "line": int(location["line"]) if "line" in location else None,
                "column": int(location["col"]) if "col" in location else None,
                "description": description,
            }
        )
    return issues


def collect_analyzer_issues(derived_data_path: Path, project_basename: str) -> list[dict[str, Any]]:
    """Issues from every analyzer plist of a project."""
    issues: list[dict[str, Any]] = []
    for plist_path in find_analyzer_reports(derived_data_path, project_basename):
        found = parse_analyzer_report(plist_path)
        if found:
            logger.debug(f"{len(found)} analyzer issue(s) in {plist_path}")
        issues.extend(found)
    return issues
