"""Main CLI entry point for buildreview."""

import asyncio
import sys
from pathlib import Path

import click

from buildreview import __version__
from buildreview.cli.display import console, show_artifacts, show_error, show_issues_table, show_success
from buildreview.commands import archive, find_build_script, prepare_work_directory, report_issues, review
from buildreview.core.config.settings import Settings
from buildreview.core.config.toolchain import load_toolchain_config
from buildreview.core.exceptions.errors import BuildReviewError
from buildreview.core.logger.logger import setup_logging

RESERVED_OPTIONS = {
    "work_directory",
    "source_directory",
    "lines_around_related",
    "toolchains",
    "settings",
    "custom_tools",
}


def parse_extra_options(values: tuple[str, ...]) -> dict[str, str]:
    """Turn repeated ``key=value`` options into a dict for build scripts."""
    options: dict[str, str] = {}
    for value in values:
        key, separator, option_value = value.partition("=")
        if not separator or not key.isidentifier():
            raise click.BadParameter(f"expected key=value, got {value!r}", param_hint="--option")
        if key in RESERVED_OPTIONS:
            raise click.BadParameter(f"{key} cannot be set as a build option", param_hint="--option")
        options[key] = option_value
    return options


@click.group()
@click.version_option(version=__version__, prog_name="buildreview")
def main() -> None:
    """buildreview - build mobile apps and review the issues they report."""


@main.command()
@click.option(
    "--source",
    "source_directory",
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Checked out source directory",
)
@click.option(
    "--work",
    "work_directory",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Work directory (emptied before the build)",
)
@click.option(
    "--script",
    "build_script",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Build script (looked up from --host/--owner/--repo when omitted)",
)
@click.option("--host", help="Repository host, for build script lookup")
@click.option("--owner", help="Repository owner, for build script lookup")
@click.option("--repo", help="Repository name, for build script lookup")
@click.option(
    "--action",
    type=click.Choice(["review", "archive"]),
    default="review",
    show_default=True,
    help="What to build for",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML configuration file",
)
@click.option("--lines-around-related", type=click.IntRange(min=0), help="Diff context window")
@click.option("--option", "-o", "extra_options", multiple=True, help="key=value given to the build script")
def build(
    source_directory: Path,
    work_directory: Path,
    build_script: Path | None,
    host: str | None,
    owner: str | None,
    repo: str | None,
    action: str,
    config_path: Path | None,
    lines_around_related: int | None,
    extra_options: tuple[str, ...],
) -> None:
    """Run a build script on local sources and report its issues."""
    options = parse_extra_options(extra_options)

    source_directory = source_directory.resolve()
    work_directory = work_directory.resolve()
    if source_directory == work_directory or source_directory.is_relative_to(work_directory):
        raise click.BadParameter("the work directory cannot contain the sources", param_hint="--work")

    settings = Settings.load(config_path)
    setup_logging(settings.logging)

    try:
        if build_script is None:
            if not (host and owner and repo):
                raise click.UsageError("Give either --script or all of --host, --owner and --repo")
            build_script = find_build_script(settings.build.base_directory, host, owner, repo)

        toolchains = load_toolchain_config(settings.build.toolchain_config_path)
        prepare_work_directory(work_directory)
        context_options = {
            "work_directory": work_directory,
            "source_directory": source_directory,
            "lines_around_related": lines_around_related,
            "toolchains": toolchains,
            "settings": settings,
            **options,
        }

        if action == "archive":
            context = asyncio.run(archive(build_script, **context_options))
        else:
            issues = asyncio.run(review(build_script, **context_options))
    except BuildReviewError as e:
        show_error("Build failed", str(e))
        sys.exit(1)

    if action == "archive":
        show_issues_table(context.issues)
        show_artifacts(context.artifacts)
        show_success("Archive complete", f"{len(context.artifacts)} artifact(s) built")
        return

    show_issues_table(issues)
    if report_issues(issues, console):
        show_success("Build complete", f"{action} finished for {source_directory.name}")
    else:
        sys.exit(1)


if __name__ == "__main__":
    main()
