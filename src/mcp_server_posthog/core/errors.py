"""
Error handling for PostHog MCP operations.

Provides structured errors with actionable suggestions for users, plus the
exception types raised inside the server. Remote failures never escape the
API client as exceptions; they are turned into exceptions here, at the
state-manager and tool-handler layer, and back into text at tool dispatch.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories for user-friendly messaging."""
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    SERVICE = "service"
    NETWORK = "network"
    TIMEOUT = "timeout"
    STATE = "state"
    UNKNOWN = "unknown"


class StateResolutionError(Exception):
    """Raised when the active org, project or user cannot be resolved."""


class ToolExecutionError(Exception):
    """Raised by tool handlers when a PostHog call fails."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AuthenticationError(Exception):
    """Raised when a request carries no usable PostHog credential."""


class ToolPermissionError(Exception):
    """Raised when the API key lacks the scopes a tool requires."""

    def __init__(self, message: str, required_scopes: list[str] | None = None) -> None:
        super().__init__(message)
        self.required_scopes = required_scopes or []


@dataclass
class PostHogError:
    """Structured error with an actionable suggestion."""

    category: ErrorCategory
    message: str
    suggestion: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_markdown(self) -> str:
        md = "## Error\n\n"
        md += f"**Category:** {self.category.value}\n"
        md += f"**Message:** {self.message}\n\n"
        md += f"**Suggestion:** {self.suggestion}\n"

        if self.details:
            md += "\n### Details\n"
            for key, value in self.details.items():
                md += f"- **{key}:** {value}\n"

        return md


# status_code -> (category, suggestion)
ERROR_MAP: dict[int, tuple[ErrorCategory, str]] = {
    400: (
        ErrorCategory.VALIDATION,
        "Check the input parameters match the expected format and constraints.",
    ),
    401: (
        ErrorCategory.AUTHENTICATION,
        "Verify your personal API key is valid and has not been revoked.",
    ),
    403: (
        ErrorCategory.AUTHORIZATION,
        "Ensure the personal API key has the scopes required for this operation.",
    ),
    404: (
        ErrorCategory.NOT_FOUND,
        "The resource may live in another project. Ask the user whether to switch projects.",
    ),
    429: (
        ErrorCategory.RATE_LIMIT,
        "Wait before retrying. Consider reducing request frequency.",
    ),
    500: (
        ErrorCategory.SERVICE,
        "This is a PostHog-side issue. Retry later.",
    ),
    503: (
        ErrorCategory.SERVICE,
        "PostHog is temporarily unavailable. Retry later.",
    ),
}


def handle_tool_error(e: Exception, tool_name: str | None = None) -> PostHogError:
    """Convert an exception raised during a tool call into a PostHogError.

    Args:
        e: The exception to handle
        tool_name: Name of the tool that was running

    Returns:
        PostHogError with category, message, and suggestion
    """
    details: dict[str, Any] = {"tool": tool_name} if tool_name else {}

    if isinstance(e, ToolExecutionError):
        category, suggestion = ERROR_MAP.get(
            e.status or 0,
            (ErrorCategory.SERVICE, "Check the error details and retry."),
        )
        if e.status:
            details["status"] = e.status
        return PostHogError(category=category, message=str(e), suggestion=suggestion, details=details)

    if isinstance(e, StateResolutionError):
        return PostHogError(
            category=ErrorCategory.STATE,
            message=str(e),
            suggestion=(
                "Use switch-organization or switch-project to select one explicitly, "
                "then retry."
            ),
            details=details,
        )

    if isinstance(e, AuthenticationError):
        return PostHogError(
            category=ErrorCategory.AUTHENTICATION,
            message=str(e),
            suggestion="Provide a personal API key starting with 'phx_'.",
            details=details,
        )

    if isinstance(e, ToolPermissionError):
        if e.required_scopes:
            details["required_scopes"] = ", ".join(e.required_scopes)
        return PostHogError(
            category=ErrorCategory.AUTHORIZATION,
            message=str(e),
            suggestion="Create a personal API key with the listed scopes.",
            details=details,
        )

    if isinstance(e, ValueError):
        return PostHogError(
            category=ErrorCategory.VALIDATION,
            message=str(e),
            suggestion="Check the input parameters and retry.",
            details=details,
        )

    if "timeout" in str(e).lower():
        return PostHogError(
            category=ErrorCategory.TIMEOUT,
            message=f"Request timeout{f' while running {tool_name}' if tool_name else ''}",
            suggestion="The operation took too long. Try a narrower query or retry later.",
            details=details,
        )

    return PostHogError(
        category=ErrorCategory.UNKNOWN,
        message=f"Unexpected error{f' while running {tool_name}' if tool_name else ''}: {e}",
        suggestion="Check the error details. If the issue persists, report it.",
        details=details,
    )


def format_error_response(error: PostHogError) -> str:
    """Render an error as the markdown text returned by a failed tool call."""
    return error.to_markdown()
