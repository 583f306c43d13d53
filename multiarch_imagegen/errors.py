"""Error definitions for multiarch_imagegen.

Every error carries a stable ``code`` for structured handling. All kinds
except LookupMiss abort the running task.
"""

from __future__ import annotations

# Error code constants
FORMAT_ERROR = "format_error"
PREFLIGHT_ERROR = "preflight_error"
EXTERNAL_TOOL_ERROR = "external_tool_error"
LOOKUP_MISS = "lookup_miss"


class ImagegenError(Exception):
    """Base class for all multiarch_imagegen errors."""

    def __init__(self, message: str, code: str) -> None:
        """Initialize ImagegenError.

        Args:
            message: Error description.
            code: Error code for structured error handling.
        """
        super().__init__(message)
        self.message = message
        self.code = code


class FormatError(ImagegenError):
    """Raised when the base image table or a platform key is malformed."""

    def __init__(self, message: str, code: str = FORMAT_ERROR) -> None:
        super().__init__(message, code)


class PreflightError(ImagegenError):
    """Raised when a precondition for a task is not met."""

    def __init__(self, message: str, code: str = PREFLIGHT_ERROR) -> None:
        super().__init__(message, code)


class ExternalToolError(ImagegenError):
    """Raised when an external command fails."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        command: str | None = None,
        code: str = EXTERNAL_TOOL_ERROR,
    ) -> None:
        """Initialize ExternalToolError.

        Args:
            message: Error description.
            exit_code: Process exit code, if the process ran.
            command: The command line that failed.
            code: Error code for structured error handling.
        """
        super().__init__(message, code)
        self.exit_code = exit_code
        self.command = command


class LookupMiss(ImagegenError):
    """Raised when an optional lookup finds nothing. Never fatal."""

    def __init__(self, message: str, code: str = LOOKUP_MISS) -> None:
        super().__init__(message, code)


__all__ = [
    "EXTERNAL_TOOL_ERROR",
    "FORMAT_ERROR",
    "LOOKUP_MISS",
    "PREFLIGHT_ERROR",
    "ExternalToolError",
    "FormatError",
    "ImagegenError",
    "LookupMiss",
    "PreflightError",
]
