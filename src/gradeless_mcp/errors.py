"""Error taxonomy — store failures, unsupported operations, bad arguments."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"
    INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
    UNKNOWN = "UNKNOWN"


class StoreUnavailable(Exception):
    """Raised when the lesson file is missing, unreadable, or malformed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Lesson store unavailable ({path}): {reason}")


class UnsupportedOperation(Exception):
    """Raised when a tool or method name is not registered."""

    def __init__(self, name: str, kind: str = "tool") -> None:
        self.name = name
        self.kind = kind
        super().__init__(f"Unknown {kind}: {name}")


class InvalidArguments(Exception):
    """Raised when tool arguments do not match the operation's schema."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Invalid arguments for {operation}: {detail}")


class ToolError(BaseModel):
    """Structured error body."""

    error: str
    category: str
    hint: str
    retryable: bool = False


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    if isinstance(error, StoreUnavailable):
        return (
            ErrorCategory.STORE_UNAVAILABLE,
            "Lesson list could not be loaded — check GRADELESS_LESSONS_PATH and the file's JSON",
        )
    if isinstance(error, UnsupportedOperation):
        return (
            ErrorCategory.UNSUPPORTED_OPERATION,
            "Call tools/list to see the supported operations",
        )
    if isinstance(error, InvalidArguments):
        return (
            ErrorCategory.INVALID_ARGUMENTS,
            "Arguments must be a JSON object matching the tool's inputSchema",
        )
    return (ErrorCategory.UNKNOWN, str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    return ToolError(
        error=str(error),
        category=cat.value,
        hint=hint,
        retryable=cat == ErrorCategory.STORE_UNAVAILABLE,
    ).model_dump()
