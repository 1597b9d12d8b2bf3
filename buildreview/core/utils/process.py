"""Subprocess helpers: run to completion, or stream output line by line."""

import asyncio
from collections.abc import Callable, Sequence
from enum import Enum
from os import PathLike
from pathlib import Path

from buildreview.core.exceptions.errors import CommandError
from buildreview.core.logger.logger import get_logger

logger = get_logger(__name__)

# xcodebuild prints whole compiler invocations on a single line
STREAM_LINE_LIMIT = 16 * 1024 * 1024


class OutputStream(str, Enum):
    """Which pipe a line of output came from."""

    OUTPUT = "output"
    ERROR = "error"

    @property
    def tag(self) -> str:
        """Three letter uppercased tag used in log files."""
        return self.value[:3].upper()


LineHandler = Callable[[OutputStream, str], None]


def _stringify(cmd: Sequence[str | PathLike[str]]) -> list[str]:
    return [str(part) for part in cmd]


async def stream_command(
    cmd: Sequence[str | PathLike[str]],
    on_line: LineHandler,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
) -> int:
    """Run a command, handing each output line to ``on_line`` as it arrives.

    Both pipes are drained concurrently; lines are delivered one at a time
    in arrival order, without trailing newlines.

    Args:
        cmd: Command and arguments.
        on_line: Called with ``(stream, line)`` for every line.
        cwd: Working directory.
        env: Environment variables.

    Returns:
        Exit code of the command.

    Raises:
        CommandError: If the command cannot start, or prints a line longer
            than ``STREAM_LINE_LIMIT``.
    """
    args = _stringify(cmd)
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=env,
            limit=STREAM_LINE_LIMIT,
        )
    except OSError as e:
        raise CommandError(f"Cannot start {args[0]}: {e}", command=args) from e

    queue: asyncio.Queue[tuple[OutputStream, str] | None] = asyncio.Queue(maxsize=1)
    read_errors: list[Exception] = []

    async def pump(reader: asyncio.StreamReader, stream: OutputStream) -> None:
        # readline raises ValueError on a line longer than the stream limit
        try:
            while True:
                raw = await reader.readline()
                if not raw:
                    break
                await queue.put((stream, raw.decode("utf-8", errors="replace").rstrip("\r\n")))
        except Exception as e:
            read_errors.append(e)
        await queue.put(None)

    pumps = [
        asyncio.create_task(pump(process.stdout, OutputStream.OUTPUT)),
        asyncio.create_task(pump(process.stderr, OutputStream.ERROR)),
    ]

    try:
        remaining = len(pumps)
        while remaining:
            item = await queue.get()
            if item is None:
                if read_errors:
                    raise CommandError(
                        f"Cannot read the output of {args[0]}: {read_errors[0]}",
                        command=args,
                    ) from read_errors[0]
                remaining -= 1
                continue
            on_line(*item)
        await asyncio.gather(*pumps)
        return await process.wait()
    finally:
        for task in pumps:
            if not task.done():
                task.cancel()
        if process.returncode is None:
            process.kill()
            await process.wait()


async def run_command(
    cmd: Sequence[str | PathLike[str]],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    allow_errors: bool = False,
) -> tuple[int, str, str]:
    """Run a helper command to completion.

    Args:
        cmd: Command and arguments.
        cwd: Working directory.
        env: Environment variables.
        allow_errors: Return a non-zero exit code instead of raising.

    Returns:
        Tuple of (return_code, stdout, stderr).

    Raises:
        CommandError: If the command cannot start, or exits non-zero
            while ``allow_errors`` is False.
    """
    args = _stringify(cmd)
    logger.debug(f"Running {args}")
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=env,
        )
    except OSError as e:
        raise CommandError(f"Cannot start {args[0]}: {e}", command=args) from e

    stdout, stderr = await process.communicate()
    return_code = process.returncode or 0
    stdout_str = stdout.decode("utf-8", errors="replace")
    stderr_str = stderr.decode("utf-8", errors="replace")

    if return_code != 0 and not allow_errors:
        raise CommandError(
            f"{args[0]} exited with code {return_code}",
            command=args,
            exit_code=return_code,
            details={"stderr": stderr_str[-1000:]},
        )
    return return_code, stdout_str, stderr_str
