"""
Feature flag tools.

Flags are addressed by key, which is what users know them by; the numeric id
is looked up through the list endpoint.
"""
from __future__ import annotations

from typing import Any

from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.errors import ToolExecutionError
from mcp_server_posthog.core.formatters import JSONFormatter, with_url
from mcp_server_posthog.core.models import EmptyInput

from ..base import ToolSpec, pick, unwrap
from .models import (
    FeatureFlagCreateInput,
    FeatureFlagDeleteInput,
    FeatureFlagGetDefinitionInput,
    FeatureFlagUpdateInput,
)


def _flag_url(context: Context, project_id: str, flag_id: Any) -> str:
    return f"{context.api.get_project_base_url(project_id)}/feature_flags/{flag_id}"


async def _find_flag(context: Context, project_id: str, key: str) -> dict[str, Any]:
    flag = unwrap(
        await context.api.feature_flags(project_id).find_by_key(key),
        "find feature flag",
    )
    if flag is None:
        raise ToolExecutionError(f"Feature flag with key '{key}' not found", status=404)
    return flag


async def get_flag_definition(context: Context, params: FeatureFlagGetDefinitionInput) -> str:
    project_id = await context.state.get_project_id()
    if params.flag_id is not None:
        flag = unwrap(
            await context.api.feature_flags(project_id).get(params.flag_id),
            "get feature flag",
        )
    else:
        flag = await _find_flag(context, project_id, params.flag_key)
    return JSONFormatter.format_compact(with_url(flag, _flag_url(context, project_id, flag["id"])))


async def get_all_flags(context: Context, params: EmptyInput) -> str:
    project_id = await context.state.get_project_id()
    flags = unwrap(await context.api.feature_flags(project_id).list(), "get feature flags")
    return JSONFormatter.format_compact([pick(flag, "id", "key", "name", "active") for flag in flags])


async def create_flag(context: Context, params: FeatureFlagCreateInput) -> str:
    project_id = await context.state.get_project_id()
    body = params.model_dump(exclude_none=True)
    flag = unwrap(await context.api.feature_flags(project_id).create(body), "create feature flag")
    return JSONFormatter.format_compact(with_url(flag, _flag_url(context, project_id, flag["id"])))


async def update_flag(context: Context, params: FeatureFlagUpdateInput) -> str:
    project_id = await context.state.get_project_id()
    existing = await _find_flag(context, project_id, params.flag_key)
    flag = unwrap(
        await context.api.feature_flags(project_id).update(
            existing["id"], params.data.model_dump(exclude_none=True)
        ),
        "update feature flag",
    )
    return JSONFormatter.format_compact(with_url(flag, _flag_url(context, project_id, flag["id"])))


async def delete_flag(context: Context, params: FeatureFlagDeleteInput) -> str:
    project_id = await context.state.get_project_id()
    existing = await _find_flag(context, project_id, params.flag_key)
    unwrap(await context.api.feature_flags(project_id).delete(existing["id"]), "delete feature flag")
    return JSONFormatter.format_compact(
        {"success": True, "message": f"Feature flag '{params.flag_key}' deleted"}
    )


TOOLS = [
    ToolSpec("feature-flag-get-definition", FeatureFlagGetDefinitionInput, get_flag_definition),
    ToolSpec("feature-flag-get-all", EmptyInput, get_all_flags),
    ToolSpec("create-feature-flag", FeatureFlagCreateInput, create_flag),
    ToolSpec("update-feature-flag", FeatureFlagUpdateInput, update_flag),
    ToolSpec("delete-feature-flag", FeatureFlagDeleteInput, delete_flag),
]
