"""
PostHog MCP tools.

``TOOL_MAP`` holds every tool. ``register_tools`` exposes the feature-enabled
subset on a FastMCP server; each call resolves the caller's ``Context``,
checks the API key's scopes and turns any failure into an error message
instead of raising into the transport.
"""
from __future__ import annotations

import inspect
from typing import Any

from fastmcp import FastMCP

from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.errors import (
    ToolPermissionError,
    format_error_response,
    handle_tool_error,
)
from mcp_server_posthog.core.observability import get_logger, observe_tool
from mcp_server_posthog.core.session import ContextProvider

from . import dashboards, docs, error_tracking, experiments, flags, insights
from . import llm_analytics, session_replays, workspace
from .base import ToolSpec
from .definitions import (
    TOOL_DEFINITIONS,
    ToolDefinition,
    get_tool_definition,
    get_tools_for_features,
    has_scopes,
)

logger = get_logger("posthog-mcp.tools")

TOOL_MAP: dict[str, ToolSpec] = {
    spec.name: spec
    for module in (
        workspace,
        flags,
        dashboards,
        insights,
        experiments,
        error_tracking,
        llm_analytics,
        session_replays,
        docs,
    )
    for spec in module.TOOLS
}

DOCS_TOOL = "docs-search"


def get_enabled_tools(features: list[str] | None, inkeep_api_key: str | None) -> list[ToolSpec]:
    """Tools enabled by feature flags and configuration, before scope checks."""
    enabled = []
    for name in get_tools_for_features(features):
        if name == DOCS_TOOL and not inkeep_api_key:
            continue
        spec = TOOL_MAP.get(name)
        if spec is not None:
            enabled.append(spec)
    return enabled


async def get_tools_from_context(
    context: Context,
    features: list[str] | None = None,
) -> list[ToolSpec]:
    """Tools available to the caller behind ``context``.

    Applies the feature filter, drops docs-search without an Inkeep key and
    drops tools whose required scopes the API key lacks.
    """
    api_key = await context.state.get_api_key()
    return [
        spec
        for spec in get_enabled_tools(features, context.inkeep_api_key)
        if has_scopes(api_key.scopes, spec.definition.required_scopes)
    ]


async def check_tool_scopes(
    context: Context,
    spec: ToolSpec,
    features: list[str] | None = None,
) -> None:
    """Raise unless ``spec`` is among the tools available behind ``context``."""
    available = await get_tools_from_context(context, features)
    if spec.name not in {tool.name for tool in available}:
        raise ToolPermissionError(
            f"The API key is missing scopes required by {spec.name}",
            required_scopes=list(spec.definition.required_scopes),
        )


def _all_optional(schema: type) -> bool:
    return all(not field.is_required() for field in schema.model_fields.values())


def build_tool_function(
    spec: ToolSpec,
    provider: ContextProvider,
    features: list[str] | None = None,
):
    """Wrap a handler as the coroutine FastMCP calls."""
    definition = spec.definition
    optional = _all_optional(spec.schema)
    annotation = spec.schema | None if optional else spec.schema

    async def run(params: Any = None) -> str:
        try:
            context = await provider.get_context()
            async with observe_tool(spec.name, definition.feature, context.scope):
                await check_tool_scopes(context, spec, features)
                return await spec.handler(context, params if params is not None else spec.schema())
        except Exception as e:
            return format_error_response(handle_tool_error(e, spec.name))

    run.__name__ = spec.name.replace("-", "_")
    run.__doc__ = definition.description
    run.__annotations__ = {"params": annotation, "return": str}
    run.__signature__ = inspect.Signature(
        [
            inspect.Parameter(
                "params",
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                default=None if optional else inspect.Parameter.empty,
                annotation=annotation,
            )
        ],
        return_annotation=str,
    )
    return run


def register_tools(
    mcp: FastMCP,
    provider: ContextProvider,
    features: list[str] | None = None,
) -> list[str]:
    """Register every enabled tool with ``mcp`` and return their names."""
    specs = get_enabled_tools(features, provider.config.posthog.inkeep_api_key)
    for spec in specs:
        definition = spec.definition
        mcp.tool(
            name=spec.name,
            description=definition.description,
            annotations=definition.annotations_with_title(),
        )(build_tool_function(spec, provider, features))

    names = [spec.name for spec in specs]
    logger.info("Registered tools", count=len(names), features=features or "all")
    return names


__all__ = [
    "TOOL_MAP",
    "TOOL_DEFINITIONS",
    "ToolSpec",
    "ToolDefinition",
    "get_tool_definition",
    "get_tools_for_features",
    "get_enabled_tools",
    "get_tools_from_context",
    "has_scopes",
    "build_tool_function",
    "register_tools",
]
