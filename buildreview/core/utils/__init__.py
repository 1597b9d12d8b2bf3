"""Utility modules."""

from buildreview.core.utils.process import (
    OutputStream,
    run_command,
    stream_command,
)

__all__ = ["OutputStream", "run_command", "stream_command"]
