"""
Error classes and exit codes for schemactl.

Error handling contract:
- CliError: expected failures with a title, message and actionable suggestions.
  Rendered as a "FAIL" panel (or JSON) by the root handler, exit code 1.
- Anything else reaching the root handler is an unexpected error, exit code 1.
- User cancellation (Ctrl+C at a prompt, plan cancellation) exits with 130.

Errors are exceptions, not values.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Codes for programmatic error handling."""
    NETWORK_ERROR = "NETWORK_ERROR"


EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
# 128 + SIGINT(2)
EXIT_SIGINT = 130


class SchemactlError(Exception):
    """Base exception for schemactl."""
    pass


class ConfigError(SchemactlError):
    """Configuration loading or validation error."""
    pass


class SchemaValidationError(SchemactlError, ValueError):
    """Raised when remote or local data does not match the expected shape."""
    pass


class CliError(SchemactlError):
    """
    Expected CLI failure with structured output.

    Attributes:
        title: Short error title for display
        message: Detailed error message
        code: Error code for programmatic handling (optional)
        suggestions: Actionable suggestions for the user
        hints: Additional context or hints
        cause: Underlying error (also set as __cause__)
    """

    def __init__(
        self,
        title: str,
        message: str,
        code: Optional[ErrorCode] = None,
        suggestions: Optional[list[str]] = None,
        hints: Optional[list[str]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.title = title
        self.message = message
        self.code = code
        self.suggestions = list(suggestions or [])
        self.hints = list(hints or [])
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output. Empty fields are omitted."""
        result: dict[str, Any] = {"title": self.title, "message": self.message}
        if self.code is not None:
            result["code"] = self.code.value
        if self.suggestions:
            result["suggestions"] = self.suggestions
        if self.hints:
            result["hints"] = self.hints
        return result
