"""Custom exception definitions for buildreview."""

from typing import Any


class BuildReviewError(Exception):
    """Base exception for all buildreview errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ValidationError(BuildReviewError):
    """Raised for invalid input or configuration detected before any work is done."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Error message.
            field: Name of the offending field or identifier.
            details: Additional error details.
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class NoActionExecutedError(ValidationError):
    """Raised when a build script completes without running any build action."""

    def __init__(self, build_script_path: str | None = None) -> None:
        details = {"build_script": build_script_path} if build_script_path else None
        super().__init__("No action executed.", details=details)


class ConfigurationError(BuildReviewError):
    """Exception raised for configuration errors."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error.

        Args:
            message: Error message.
            config_key: Configuration key that caused the error.
            details: Additional error details.
        """
        details = details or {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, details)


class ToolchainResolutionError(BuildReviewError):
    """Raised when the selected toolchain cannot be resolved to an install on disk."""

    def __init__(
        self,
        message: str,
        version: str | None = None,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if version:
            details["version"] = version
        if path:
            details["path"] = path
        super().__init__(message, details)


class BuildActionFailure(BuildReviewError):
    """Raised when a build action fails in a way no diagnostic explains."""

    def __init__(
        self,
        message: str,
        action: str | None = None,
        exit_code: int | None = None,
        log_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize build action failure.

        Args:
            message: Error message.
            action: Build action that failed (analyze, test, archive...).
            exit_code: Exit code of the build tool, if it ran.
            log_path: Log file of the failed invocation.
            details: Additional error details.
        """
        details = details or {}
        if action:
            details["action"] = action
        if exit_code is not None:
            details["exit_code"] = exit_code
        if log_path:
            details["log_path"] = log_path
        super().__init__(message, details)
        self.action = action
        self.exit_code = exit_code


class CommandError(BuildReviewError):
    """Exception raised when a helper command exits with an error."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        exit_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if command:
            details["command"] = " ".join(command)
        if exit_code is not None:
            details["exit_code"] = exit_code
        super().__init__(message, details)
        self.exit_code = exit_code


class ReportError(BuildReviewError):
    """Exception raised when a tool report is missing or cannot be parsed."""

    def __init__(
        self,
        message: str,
        report_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if report_path:
            details["report_path"] = report_path
        super().__init__(message, details)
