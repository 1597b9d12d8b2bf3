"""Exception definitions module."""

from buildreview.core.exceptions.errors import (
    BuildActionFailure,
    BuildReviewError,
    CommandError,
    ConfigurationError,
    NoActionExecutedError,
    ReportError,
    ToolchainResolutionError,
    ValidationError,
)

__all__ = [
    "BuildReviewError",
    "ValidationError",
    "NoActionExecutedError",
    "ConfigurationError",
    "ToolchainResolutionError",
    "BuildActionFailure",
    "CommandError",
    "ReportError",
]
