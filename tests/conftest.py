"""Pytest configuration and shared fixtures."""

import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Generator

import pytest

from buildreview.build.context import BuildContext
from buildreview.core.config.settings import BuildSettings, LoggingSettings, Settings
from buildreview.core.config.toolchain import ToolchainConfig
from buildreview.tools.xcode.tool import XCODEBUILD_PATH


def write_executable(path: Path, body: str) -> Path:
    """Write a /bin/sh script and make it executable."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(0o755)
    return path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory that is cleaned up after the test.

    Yields:
        Path to the temporary directory.
    """
    temp_path = Path(tempfile.mkdtemp()).resolve()
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def source_dir(temp_dir: Path) -> Path:
    """Checked out sources of the project being built."""
    path = temp_dir / "source"
    path.mkdir()
    return path


@pytest.fixture
def work_dir(temp_dir: Path) -> Path:
    """Work directory of the build run."""
    path = temp_dir / "work"
    path.mkdir()
    return path


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    """Settings isolated from the user's environment."""
    return Settings(
        logging=LoggingSettings(use_rich=False),
        build=BuildSettings(base_directory=temp_dir / "base", log_tail_lines=20),
    )


@pytest.fixture
def fake_xcode(temp_dir: Path) -> Path:
    """An Xcode install directory whose xcodebuild exits successfully."""
    xcode_path = temp_dir / "Xcode.app"
    write_executable(xcode_path / XCODEBUILD_PATH, "exit 0\n")
    return xcode_path


@pytest.fixture
def make_xcodebuild(fake_xcode: Path) -> Callable[[str], Path]:
    """Replace the body of the fake xcodebuild script."""

    def _make(body: str) -> Path:
        return write_executable(fake_xcode / XCODEBUILD_PATH, body)

    return _make


@pytest.fixture
def toolchains(fake_xcode: Path) -> ToolchainConfig:
    """Toolchain configuration pointing at the fake Xcode."""
    return ToolchainConfig(versions={"15.0": str(fake_xcode)}, default="15.0")


@pytest.fixture
def build_context(
    source_dir: Path,
    work_dir: Path,
    settings: Settings,
    toolchains: ToolchainConfig,
) -> BuildContext:
    """A review build context using the fake Xcode."""
    return BuildContext(
        "review",
        work_directory=work_dir,
        source_directory=source_dir,
        settings=settings,
        toolchains=toolchains,
        custom_tools=[],
    )
