"""Logging for buildreview.

Diagnostics go through stdlib logging, rendered by rich on stderr. Output
meant for the operator (log tails of failed build actions) is printed on
the shared stderr console returned by ``get_console``, so that it is never
filtered by the log level.
"""

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from buildreview.core.config.settings import LoggingSettings, get_settings

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_console: Console | None = None
_configured = False


def _stream_handler(settings: LoggingSettings) -> logging.Handler:
    if not settings.use_rich:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(settings.format))
        return handler
    # Build tool output may contain brackets, keep markup off
    return RichHandler(
        console=get_console(),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )


def setup_logging(settings: LoggingSettings | None = None) -> None:
    """Route every logger of the process to stderr, and to a file when configured.

    Calling it again replaces the handlers installed by a previous call.

    Args:
        settings: Logging settings. Uses global settings if not provided.
    """
    global _configured

    if settings is None:
        settings = get_settings().logging
    level = logging.getLevelName(settings.level)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)
    root_logger.addHandler(_stream_handler(settings))

    if settings.file:
        settings.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(settings.file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root_logger.addHandler(file_handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, configuring logging with the global settings on first use."""
    if not _configured and not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)


def get_console() -> Console:
    """Shared rich console writing to stderr."""
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console
