"""
Base Tool - Abstract base class for platform build tools.

A tool is bound to one BuildContext and exposes the build actions a build
script can call on it. The capability set is closed: analyze, test and
archive. Tools that do not support an action refuse it with a
ValidationError.
"""

from abc import ABC
from collections import deque
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from os import PathLike
from pathlib import Path
from typing import TYPE_CHECKING, Any

from buildreview.core.exceptions.errors import ValidationError
from buildreview.core.logger.logger import get_console, get_logger
from buildreview.core.utils.process import LineHandler, OutputStream, stream_command

if TYPE_CHECKING:
    from buildreview.build.context import BuildContext

logger = get_logger(__name__)


class BaseTool(ABC):
    """
    Abstract base class for build tools.

    Subclasses set ``name`` (the identifier build scripts use to reach the
    tool, e.g. ``context.xcode``) and override the actions they support.
    """

    # Tool metadata (override in subclasses)
    name: str = "base"
    description: str = "Base build tool"

    def __init__(self, context: "BuildContext") -> None:
        """
        Initialize the tool.

        Args:
            context: Build context the tool reports issues and artifacts to.
        """
        self.context = context

    async def analyze(self, project_path: str | Path, **options: Any) -> Any:
        """Run the tool's static analysis action."""
        self._unsupported("analyze")

    async def test(self, project_path: str | Path, **options: Any) -> Any:
        """Run the tool's test action."""
        self._unsupported("test")

    async def archive(self, project_path: str | Path, **options: Any) -> Any:
        """Run the tool's packaging action."""
        self._unsupported("archive")

    def _unsupported(self, action: str) -> None:
        raise ValidationError(
            f"The {self.name} tool does not support the {action} action",
            field=action,
        )

    def new_log_path(self, prefix: str) -> Path:
        """Fresh timestamped log file path in the work directory."""
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S%f")[:-3]
        return self.context.work_directory / f"{prefix}-{timestamp}.log"

    async def run_logged(
        self,
        cmd: Sequence[str | PathLike[str]],
        log_path: Path,
        on_line: LineHandler,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> int:
        """
        Run a command, writing every output line to a log file.

        Each line is written prefixed with its stream tag (``OUT``/``ERR``)
        and then handed to ``on_line``.

        Args:
            cmd: Command and arguments.
            log_path: Log file to create.
            on_line: Called with ``(stream, line)`` for every line.
            cwd: Working directory.
            env: Environment variables.

        Returns:
            Exit code of the command.
        """
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(log_path, "w", encoding="utf-8") as log_file:
            log_file.write(f"running {[str(part) for part in cmd]}\n")
            logger.info(f"Redirecting output to {log_path}")

            def handle(stream: OutputStream, line: str) -> None:
                log_file.write(f"{stream.tag}: {line}\n")
                on_line(stream, line)

            return await stream_command(cmd, handle, cwd=cwd, env=env)

    @contextmanager
    def log_tail_on_error(self, log_path: Path) -> Iterator[None]:
        """Show the end of ``log_path`` to the operator if the block raises."""
        try:
            yield
        except Exception:
            if log_path.exists():
                self.show_log_tail(log_path)
            raise

    def show_log_tail(self, log_path: Path) -> None:
        """Print the last lines of a log file on the operator console."""
        line_count = self.context.settings.build.log_tail_lines
        with open(log_path, encoding="utf-8", errors="replace") as log_file:
            tail = deque(log_file, maxlen=line_count)

        console = get_console()
        console.print(
            f"An error occurred - displaying the {line_count} last lines of the log.",
            style="bold red",
        )
        console.out("".join(tail), end="", highlight=False)
