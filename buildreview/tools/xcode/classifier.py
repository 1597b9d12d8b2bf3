"""Extraction of build errors from the xcodebuild log.

xcodebuild reports errors as a header line, optionally followed by indented
continuation lines (the offending source line, a caret marker, notes)::

    /src/App/ViewController.m:12:5: error: use of undeclared identifier 'foo'
        foo = 1;
        ^

Lines are classified one at a time; a diagnostic stays pending until a line
that does not continue it arrives, or the stream is flushed.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from buildreview.core.utils.process import OutputStream
from buildreview.models.issue import IssueKind

IssueSink = Callable[[dict[str, Any]], Any]

HEADER_PATTERNS: tuple[re.Pattern[str], ...] = (
    # /path/File.swift:12:5: error: message
    re.compile(
        r"^(?P<file_path>[^:\s][^:]*):(?P<line>\d+):(?:(?P<column>\d+):)?\s*"
        r"(?:fatal )?error:\s*(?P<description>.+)$"
    ),
    # clang: error: message / xcodebuild: error: message / error: message
    re.compile(r"^(?:[\w.+-]+: )?error:\s*(?P<description>.+)$"),
    re.compile(r"^(?P<description>ld: (?!warning:).+)$"),
    re.compile(r"^(?P<description>Undefined symbols for architecture \S+:)$"),
)


@dataclass
class PendingDiagnostic:
    """Diagnostic whose continuation lines may still be arriving."""

    description_lines: list[str]
    file_path: str | None = None
    line: int | None = None
    column: int | None = None

    def to_issue(self) -> dict[str, Any]:
        return {
            "kind": IssueKind.ERROR,
            "description": "\n".join(self.description_lines),
            "file_path": self.file_path,
            "line": self.line,
            "column": self.column,
        }


def parse_header(line: str) -> PendingDiagnostic | None:
    """Start a diagnostic if ``line`` is an error header."""
    for pattern in HEADER_PATTERNS:
        match = pattern.match(line)
        if not match:
            continue
        groups = match.groupdict()
        # "error:" with nothing after it keeps the header itself as description
        description = groups["description"].strip() or line.strip()
        return PendingDiagnostic(
            description_lines=[description],
            file_path=groups.get("file_path"),
            line=int(groups["line"]) if groups.get("line") else None,
            column=int(groups["column"]) if groups.get("column") else None,
        )
    return None


def is_continuation(line: str) -> bool:
    """Indented, non blank lines continue the pending diagnostic."""
    return bool(line.strip()) and line[0] in " \t"


class LogLineClassifier:
    """Turns error blocks of one xcodebuild run into error issues.

    Use one instance per invocation: ``new_error_found`` only reports the
    lines this instance classified.
    """

    def __init__(self, add_issue: IssueSink) -> None:
        """
        Args:
            add_issue: Receives each extracted issue (e.g. ``BuildContext.add_issue``).
        """
        self._add_issue = add_issue
        self._pending: PendingDiagnostic | None = None
        self.new_error_found = False

    def process_line(self, stream: OutputStream, line: str) -> None:
        """Classify one line of output from either stream."""
        header = parse_header(line)
        if header is not None:
            self._emit()
            self._pending = header
        elif self._pending is not None:
            if is_continuation(line):
                self._pending.description_lines.append(line.rstrip())
            else:
                self._emit()

    def flush(self) -> None:
        """Emit the diagnostic still pending at the end of the stream."""
        self._emit()

    def _emit(self) -> None:
        if self._pending is None:
            return
        pending, self._pending = self._pending, None
        self._add_issue(pending.to_issue())
        self.new_error_found = True
