"""Shared plumbing for tool handlers."""
from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.errors import ToolExecutionError
from mcp_server_posthog.core.result import ApiResult

from .definitions import ToolDefinition, get_tool_definition

Handler = Callable[[Context, Any], Awaitable[str]]


@dataclass(frozen=True)
class ToolSpec:
    """A tool: its name, input model and handler."""
    name: str
    schema: type[BaseModel]
    handler: Handler

    @property
    def definition(self) -> ToolDefinition:
        return get_tool_definition(self.name)


def unwrap(result: ApiResult[Any], action: str) -> Any:
    """Return the payload of a successful result or raise ``ToolExecutionError``.

    ``action`` completes the sentence "Failed to ...".
    """
    if not result.success:
        raise ToolExecutionError(f"Failed to {action}: {result.message}", status=result.status)
    return result.data


def pick(data: dict[str, Any], *keys: str) -> dict[str, Any]:
    """Subset of ``data`` with only ``keys`` (missing keys are skipped)."""
    return {key: data[key] for key in keys if key in data}
