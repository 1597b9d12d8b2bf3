"""Tests for static analyzer plist parsing."""

import plistlib
from pathlib import Path

import pytest

from buildreview.core.exceptions.errors import ReportError
from buildreview.models.issue import IssueKind
from buildreview.tools.xcode.static_analyzer import (
    collect_analyzer_issues,
    find_analyzer_reports,
    parse_analyzer_report,
)


def analyzer_bundle(files: list[str], diagnostics: list[dict], clang_version: str = "Apple clang 15.0") -> dict:
    return {"clang_version": clang_version, "files": files, "diagnostics": diagnostics}


def diagnostic(description: str, file_index: int = 0, line: int = 10, col: int = 3) -> dict:
    return {
        "description": description,
        "category": "Logic error",
        "location": {"file": file_index, "line": line, "col": col},
    }


def write_plist(path: Path, content: dict, fmt=plistlib.FMT_XML) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        plistlib.dump(content, f, fmt=fmt)
    return path


def analyzer_path(work_dir: Path, name: str, intermediates: str = "Intermediates.noindex") -> Path:
    return (
        work_dir / "Build" / intermediates / "Demo.build" / "Debug-iphoneos" / "Demo.build"
        / "StaticAnalyzer" / "Demo" / "normal" / "arm64" / name
    )


class TestParseAnalyzerReport:
    """Test parsing one analyzer bundle."""

    def test_one_issue_per_diagnostic(self, temp_dir):
        path = write_plist(
            temp_dir / "report.plist",
            analyzer_bundle(
                ["/src/App/Main.m", "/src/App/Other.m"],
                [diagnostic("Null pointer dereference"), diagnostic("Dead store", file_index=1, line=4, col=1)],
            ),
        )

        issues = parse_analyzer_report(path)

        assert len(issues) == 2
        assert issues[0] == {
            "kind": IssueKind.STATIC_ANALYSIS,
            "file_path": "/src/App/Main.m",
            "line": 10,
            "column": 3,
            "description": "Null pointer dereference",
        }
        assert issues[1]["file_path"] == "/src/App/Other.m"

    def test_binary_plist(self, temp_dir):
        path = write_plist(
            temp_dir / "report.plist",
            analyzer_bundle(["/src/a.m"], [diagnostic("Leak")]),
            fmt=plistlib.FMT_BINARY,
        )
        assert len(parse_analyzer_report(path)) == 1

    @pytest.mark.parametrize(
        "content",
        [
            {"files": ["/src/a.m"], "diagnostics": [diagnostic("Leak")]},
            analyzer_bundle([], [diagnostic("Leak")]),
            analyzer_bundle(["/src/a.m"], []),
        ],
    )
    def test_incomplete_bundles_skipped(self, temp_dir, content):
        path = write_plist(temp_dir / "report.plist", content)
        assert parse_analyzer_report(path) == []

    def test_diagnostic_without_description_skipped(self, temp_dir):
        blank = diagnostic("   ")
        missing = diagnostic("unused")
        del missing["description"]
        path = write_plist(
            temp_dir / "report.plist",
            analyzer_bundle(["/src/a.m"], [blank, missing, diagnostic("Leak")]),
        )

        issues = parse_analyzer_report(path)

        assert [issue["description"] for issue in issues] == ["Leak"]

    def test_unreadable_report(self, temp_dir):
        path = temp_dir / "report.plist"
        path.write_text("not a plist")
        with pytest.raises(ReportError):
            parse_analyzer_report(path)


class TestFindAnalyzerReports:
    """Test locating analyzer bundles in derived data."""

    def test_finds_reports_of_project_only(self, work_dir):
        ours = write_plist(analyzer_path(work_dir, "Main.plist"), analyzer_bundle([], []))
        legacy = write_plist(analyzer_path(work_dir, "Old.plist", "Intermediates"), analyzer_bundle([], []))
        write_plist(
            work_dir / "Build" / "Intermediates.noindex" / "Other.build" / "StaticAnalyzer" / "x.plist",
            analyzer_bundle([], []),
        )
        write_plist(
            work_dir / "Build" / "Intermediates.noindex" / "Demo.build" / "Info.plist",
            analyzer_bundle([], []),
        )

        assert set(find_analyzer_reports(work_dir, "Demo")) == {ours, legacy}

    def test_no_derived_data(self, work_dir):
        assert list(find_analyzer_reports(work_dir, "Demo")) == []

    def test_collect_issues(self, work_dir):
        write_plist(analyzer_path(work_dir, "A.plist"), analyzer_bundle(["/src/a.m"], [diagnostic("Leak")]))
        write_plist(analyzer_path(work_dir, "B.plist"), analyzer_bundle(["/src/b.m"], [diagnostic("Dead store")]))

        issues = collect_analyzer_issues(work_dir, "Demo")

        assert sorted(issue["description"] for issue in issues) == ["Dead store", "Leak"]
