"""Tests for FindBugs report parsing and AndroidTool."""

from pathlib import Path

import pytest

from buildreview.core.exceptions.errors import BuildActionFailure, ReportError, ValidationError
from buildreview.models.issue import IssueKind
from buildreview.tools.android.findbugs import FINDBUGS_REPORT_FILE, parse_findbugs_report

REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<BugCollection version="3.0.1">
  <BugInstance type="DM_DEFAULT_ENCODING" priority="1">
    <ShortMessage>Reliance on default encoding</ShortMessage>
    <LongMessage>Found reliance on default encoding in com.example.Main.read()</LongMessage>
    <SourceLine classname="com.example.Main" start="42" end="42" sourcepath="com/example/Main.java"/>
  </BugInstance>
  <BugInstance type="URF_UNREAD_FIELD" priority="2">
    <ShortMessage>Unread field</ShortMessage>
    <SourceLine classname="com.example.Model" sourcepath="com/example/Model.java"/>
  </BugInstance>
  <BugInstance type="SE_BAD_FIELD" priority="2"/>
</BugCollection>
"""


def write_report(project_directory: Path, content: str = REPORT) -> Path:
    report_path = project_directory / FINDBUGS_REPORT_FILE
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(content)
    return report_path


def write_gradlew(source_dir: Path, body: str) -> Path:
    gradlew = source_dir / "gradlew"
    gradlew.write_text("#!/bin/sh\n" + body)
    gradlew.chmod(0o755)
    return gradlew


class TestParseFindbugsReport:
    """Test reading FindBugs XML reports."""

    def test_bug_instances(self, source_dir):
        write_report(source_dir / "app")

        issues = parse_findbugs_report("app", base_directory=source_dir)

        assert issues[0] == {
            "kind": IssueKind.STATIC_ANALYSIS,
            "description": "Found reliance on default encoding in com.example.Main.read()",
            "file_path": source_dir / "app" / "src" / "main" / "java" / "com" / "example" / "Main.java",
            "line": 42,
        }

    def test_message_fallbacks(self, source_dir):
        write_report(source_dir / "app")

        issues = parse_findbugs_report("app", base_directory=source_dir)

        assert issues[1]["description"] == "Unread field"
        assert issues[1]["line"] is None
        assert issues[2] == {
            "kind": IssueKind.STATIC_ANALYSIS,
            "description": "SE_BAD_FIELD",
            "file_path": None,
            "line": None,
        }

    def test_language_directory(self, source_dir):
        write_report(source_dir / "app")
        issues = parse_findbugs_report("app", base_directory=source_dir, language="kotlin")
        assert "kotlin" in issues[0]["file_path"].parts

    def test_missing_report(self, source_dir):
        with pytest.raises(ReportError):
            parse_findbugs_report("app", base_directory=source_dir)

    def test_missing_report_allowed(self, source_dir):
        assert parse_findbugs_report("app", base_directory=source_dir, allow_missing=True) == []

    def test_malformed_report(self, source_dir):
        write_report(source_dir / "app", "<BugCollection><BugInstance>")
        with pytest.raises(ReportError, match="Malformed"):
            parse_findbugs_report("app", base_directory=source_dir)


class TestAndroidTool:
    """Test the Gradle driven analysis."""

    def test_findbugs_issues_relative_to_sources(self, build_context, source_dir):
        write_report(source_dir / "app")

        build_context.android.findbugs("app")

        issue = build_context.issues[0]
        assert issue.file_path == Path("app/src/main/java/com/example/Main.java")
        assert issue.to_display() == (
            "app/src/main/java/com/example/Main.java:42: "
            "Found reliance on default encoding in com.example.Main.read()"
        )

    @pytest.mark.asyncio
    async def test_analyze(self, build_context, source_dir, temp_dir):
        calls = temp_dir / "calls.txt"
        write_gradlew(source_dir, f'echo "$*" > "{calls}"\n')
        write_report(source_dir / "app")

        issues = await build_context.android.analyze("app")

        assert calls.read_text().strip() == "-p app findbugs"
        assert len(issues) == 3
        assert len(build_context.issues) == 3
        assert build_context.action_executed is True

    @pytest.mark.asyncio
    async def test_failed_task_explained_by_report(self, build_context, source_dir):
        write_gradlew(source_dir, "echo 'FindBugs rule violations were found.' >&2\nexit 1\n")
        write_report(source_dir / "app")

        issues = await build_context.android.analyze("app")

        assert len(issues) == 3

    @pytest.mark.asyncio
    async def test_failed_task_without_report(self, build_context, source_dir):
        write_gradlew(source_dir, "echo 'Task not found' >&2\nexit 1\n")

        with pytest.raises(BuildActionFailure, match=r"Unknown error \(1\)"):
            await build_context.android.analyze("app")

    @pytest.mark.asyncio
    async def test_missing_report_after_success(self, build_context, source_dir):
        write_gradlew(source_dir, "exit 0\n")

        with pytest.raises(ReportError):
            await build_context.android.analyze("app")

        assert await build_context.android.analyze("app", allow_missing_report=True) == []

    @pytest.mark.asyncio
    async def test_unsupported_action(self, build_context):
        with pytest.raises(ValidationError, match="does not support the archive action"):
            await build_context.android.archive("app")
