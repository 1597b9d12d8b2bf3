"""Tests for BuildContext and build script execution."""

from pathlib import Path

import pytest

from buildreview.build.context import BuildContext
from buildreview.core.exceptions.errors import NoActionExecutedError, ValidationError
from buildreview.models.issue import IssueKind


def write_script(path: Path, body: str) -> Path:
    path.write_text(body)
    return path


class TestBuildContextInit:
    """Test construction and validation."""

    def test_directories_required(self, source_dir, settings):
        with pytest.raises(ValidationError, match="work_directory is required"):
            BuildContext(source_directory=source_dir, settings=settings)

    def test_source_directory_required(self, work_dir, settings):
        with pytest.raises(ValidationError, match="source_directory is required"):
            BuildContext(work_directory=work_dir, source_directory="", settings=settings)

    def test_defaults(self, build_context, source_dir, work_dir):
        assert build_context.action == "review"
        assert build_context.work_directory == work_dir
        assert build_context.source_directory == source_dir
        assert build_context.lines_around_related == 20
        assert build_context.action_executed is False
        assert build_context.issues == ()
        assert build_context.artifacts == ()

    def test_extra_options_kept(self, source_dir, work_dir, settings):
        context = BuildContext(
            "archive",
            work_directory=work_dir,
            source_directory=source_dir,
            settings=settings,
            lines_around_related=5,
            branch="main",
        )
        assert context.options == {"branch": "main"}
        assert context.lines_around_related == 5

    def test_issue_and_artifact_snapshots(self, build_context, source_dir):
        build_context.add_issue(
            {"kind": "error", "description": "boom", "file_path": str(source_dir / "a.m"), "line": 1}
        )
        build_context.add_artifacts(["/work/a.ipa", "/work/a.ipa"])

        assert build_context.error_found is True
        assert build_context.issues[0].file_path == Path("a.m")
        assert build_context.artifacts == (Path("/work/a.ipa"),)

    def test_resolve_source_path(self, build_context, source_dir):
        assert build_context.resolve_source_path("App.xcodeproj") == source_dir / "App.xcodeproj"
        assert build_context.resolve_source_path("/abs/App.xcodeproj") == Path("/abs/App.xcodeproj")


class TestIdentifierUpdater:
    """Test make_identifier_updater."""

    def test_prefix_replacement(self):
        update = BuildContext.make_identifier_updater({"com.example.app": "com.example.beta"})

        assert update("com.example.app") == "com.example.beta"
        assert update("com.example.app.widget") == "com.example.beta.widget"
        assert update("com.example.apps") == "com.example.apps"
        assert update("org.other") == "org.other"


class TestRunScript:
    """Test build script execution."""

    @pytest.mark.asyncio
    async def test_build_project_runs_async_script(self, temp_dir, source_dir, work_dir, settings):
        script = write_script(
            temp_dir / "build_script.py",
            "async def build(context):\n"
            "    context.mark_action_executed()\n"
            "    context.add_issue({'kind': 'warning', 'description': context.options['branch']})\n",
        )

        context = await BuildContext.build_project(
            "review",
            script,
            work_directory=work_dir,
            source_directory=source_dir,
            settings=settings,
            branch="feature/login",
        )

        assert context.action_executed is True
        assert context.issues[0].description == "feature/login"

    @pytest.mark.asyncio
    async def test_script_runs_in_source_directory(self, temp_dir, build_context, source_dir):
        script = write_script(
            temp_dir / "build_script.py",
            "from pathlib import Path\n"
            "def build(context):\n"
            "    context.mark_action_executed()\n"
            "    context.add_issue({'kind': 'warning', 'description': str(Path.cwd())})\n",
        )
        cwd = Path.cwd()

        await build_context.run_script(script)

        assert Path(build_context.issues[0].description).resolve() == source_dir.resolve()
        assert Path.cwd() == cwd

    @pytest.mark.asyncio
    async def test_no_action_executed(self, temp_dir, source_dir, work_dir, settings):
        script = write_script(temp_dir / "noop.py", "def build(context):\n    pass\n")

        with pytest.raises(NoActionExecutedError, match="No action executed"):
            await BuildContext.build_project(
                "review", script, work_directory=work_dir, source_directory=source_dir, settings=settings
            )

    @pytest.mark.asyncio
    async def test_missing_script(self, temp_dir, source_dir, work_dir, settings):
        with pytest.raises(ValidationError, match="Cannot find build script"):
            await BuildContext.build_project(
                "review",
                temp_dir / "missing.py",
                work_directory=work_dir,
                source_directory=source_dir,
                settings=settings,
            )

    @pytest.mark.asyncio
    async def test_script_without_build_function(self, temp_dir, build_context):
        script = write_script(temp_dir / "empty.py", "VALUE = 1\n")
        with pytest.raises(ValidationError, match="must define build"):
            await build_context.run_script(script)

    @pytest.mark.asyncio
    async def test_script_errors_propagate(self, temp_dir, build_context):
        script = write_script(temp_dir / "broken.py", "def build(context):\n    raise RuntimeError('bad')\n")
        with pytest.raises(RuntimeError, match="bad"):
            await build_context.run_script(script)

    @pytest.mark.asyncio
    async def test_script_drives_tools(self, temp_dir, build_context, make_xcodebuild):
        make_xcodebuild("echo 'Build succeeded'\n")
        script = write_script(
            temp_dir / "analyze.py",
            "async def build(context):\n"
            "    await context.xcode.analyze('Demo.xcodeproj', scheme='Demo')\n",
        )

        await build_context.run_script(script)

        assert build_context.action_executed is True
        assert not any(issue.kind is IssueKind.ERROR for issue in build_context.issues)
