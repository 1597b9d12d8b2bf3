"""FindBugs XML report parsing."""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

from buildreview.core.exceptions.errors import ReportError
from buildreview.core.logger.logger import get_logger
from buildreview.models.issue import IssueKind

logger = get_logger(__name__)

FINDBUGS_REPORT_FILE = Path("build", "reports", "findbugs", "findbugs.xml")


def findbugs_report_path(project_directory: Path) -> Path:
    return project_directory / FINDBUGS_REPORT_FILE


def parse_findbugs_report(
    target_project: str | Path,
    base_directory: Path | None = None,
    language: str = "java",
    allow_missing: bool = False,
) -> list[dict[str, Any]]:
    """Extract one static analysis issue per ``BugInstance`` of a FindBugs report.

    Source paths in the report are relative to the ``src/main/<language>``
    directory of the project.

    Args:
        target_project: Gradle project directory, relative to ``base_directory``.
        base_directory: Directory the project path is relative to (cwd when omitted).
        language: Source set language directory.
        allow_missing: Return no issue instead of failing when there is no report.

    Returns:
        Issue mappings, in report order.

    Raises:
        ReportError: If the report is missing (unless ``allow_missing``) or malformed.
    """
    project_directory = (base_directory or Path.cwd()) / target_project
    report_path = findbugs_report_path(project_directory)

    if not report_path.exists():
        if allow_missing:
            logger.info(f"No FindBugs report at {report_path}")
            return []
        raise ReportError(f"FindBugs report not found: {report_path}", report_path=str(report_path))

    try:
        root = ET.parse(report_path).getroot()
    except ET.ParseError as e:
        raise ReportError(
            f"Malformed FindBugs report {report_path}: {e}",
            report_path=str(report_path),
        ) from e

    source_root = project_directory / "src" / "main" / language
    issues = []
    for bug in root.iter("BugInstance"):
        source_line = bug.find("SourceLine")
        source_path = source_line.get("sourcepath") if source_line is not None else None
        start = source_line.get("start") if source_line is not None else None

        description = (
            bug.findtext("LongMessage")
            or bug.findtext("ShortMessage")
            or bug.get("type", "")
        )
        issues.append(
            {
                "kind": IssueKind.STATIC_ANALYSIS,
                "description": description.strip(),
                "file_path": source_root / source_path if source_path else None,
                "line": int(start) if start else None,
            }
        )
    return issues
