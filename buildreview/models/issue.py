"""Issue model and the per-build issue store.

Issues found by different build actions (log classification, static analyzer
bundles, FindBugs reports...) are merged into one store. Two issues with the
same ``(file_path, line, column, description)`` are the same problem and are
kept once, with the strongest kind: error > static_analysis > warning.
"""

from collections.abc import Iterator, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from buildreview.core.exceptions.errors import ValidationError


class IssueKind(str, Enum):
    """Kind of issue, ordered by severity."""

    WARNING = "warning"  # Should be fixed, does not fail a review
    STATIC_ANALYSIS = "static_analysis"  # Analyzer finding
    ERROR = "error"  # Build error

    @property
    def severity(self) -> int:
        """Numeric severity, higher is worse."""
        return _SEVERITY[self]


_SEVERITY = {
    IssueKind.WARNING: 0,
    IssueKind.STATIC_ANALYSIS: 1,
    IssueKind.ERROR: 2,
}

IssueSignature = tuple[Path | None, int | None, int | None, str]


class Issue(BaseModel):
    """One detected problem, optionally located in a source file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: IssueKind = Field(..., description="Kind of issue")
    description: str = Field(..., min_length=1, description="Human readable description")
    file_path: Path | None = Field(
        default=None,
        description="File path, relative to the source directory when under it",
    )
    line: int | None = Field(default=None, ge=0, description="Line number")
    column: int | None = Field(default=None, ge=0, description="Column number")

    @property
    def signature(self) -> IssueSignature:
        """Identity used to detect the same issue reported twice."""
        return (self.file_path, self.line, self.column, self.description)

    def to_display(self) -> str:
        """Format as ``path:line: description``."""
        location = str(self.file_path) if self.file_path else ""
        if self.line is not None:
            location = f"{location}:{self.line}"
        if not location:
            return self.description
        return f"{location}: {self.description}"


class IssueStore:
    """Accumulates the issues of one build run, merging duplicates."""

    def __init__(self, source_directory: Path | None = None) -> None:
        """Initialize the store.

        Args:
            source_directory: Absolute file paths under this directory are
                stored relative to it.
        """
        self.source_directory = source_directory
        self._issues: list[Issue] = []
        self._positions: dict[IssueSignature, int] = {}

    def add(self, issue: Issue | Mapping[str, Any]) -> Issue:
        """Add an issue, merging it with an already stored identical one.

        Args:
            issue: Issue, or a mapping with ``kind``, ``description`` and
                optionally ``file_path``, ``line`` and ``column``.

        Returns:
            The issue stored for this signature after the merge.

        Raises:
            ValidationError: If required fields are missing or invalid. The
                store is left unchanged.
        """
        issue = self._normalize(self._validate(issue))
        signature = issue.signature

        position = self._positions.get(signature)
        if position is None:
            self._positions[signature] = len(self._issues)
            self._issues.append(issue)
            return issue

        existing = self._issues[position]
        if existing.kind is IssueKind.ERROR or existing.kind is issue.kind:
            return existing
        if issue.kind in (IssueKind.ERROR, IssueKind.STATIC_ANALYSIS):
            self._issues[position] = issue
            return issue
        return existing

    def all(self) -> tuple[Issue, ...]:
        """Immutable snapshot of the stored issues, in insertion order."""
        return tuple(self._issues)

    def has_error(self) -> bool:
        """Whether any stored issue is an error."""
        return any(issue.kind is IssueKind.ERROR for issue in self._issues)

    def count(self, kind: IssueKind) -> int:
        """Number of stored issues of the given kind."""
        return sum(1 for issue in self._issues if issue.kind is kind)

    def __len__(self) -> int:
        return len(self._issues)

    def __iter__(self) -> Iterator[Issue]:
        return iter(self.all())

    @staticmethod
    def _validate(issue: Issue | Mapping[str, Any]) -> Issue:
        if isinstance(issue, Issue):
            return issue
        if not isinstance(issue, Mapping):
            raise ValidationError(f"An issue must be a mapping, not {type(issue).__name__}")
        try:
            return Issue.model_validate(dict(issue))
        except PydanticValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            valid_kinds = [kind.value for kind in IssueKind]
            raise ValidationError(
                f"Invalid issue: an issue needs a description and a kind in {valid_kinds}",
                field=", ".join(fields) or None,
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

    def _normalize(self, issue: Issue) -> Issue:
        file_path = issue.file_path
        if file_path is None or not file_path.is_absolute() or self.source_directory is None:
            return issue
        relative = _relative_to(file_path, self.source_directory)
        if relative is None:
            return issue
        return issue.model_copy(update={"file_path": relative})


def _relative_to(path: Path, root: Path) -> Path | None:
    """Path relative to root, comparing resolved paths when the raw ones differ."""
    if path.is_relative_to(root):
        return path.relative_to(root)
    resolved_path, resolved_root = path.resolve(), root.resolve()
    if resolved_path.is_relative_to(resolved_root):
        return resolved_path.relative_to(resolved_root)
    return None
