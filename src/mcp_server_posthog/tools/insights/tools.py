"""
Insight and query tools.

Insights are addressed either by numeric id or by the short id that appears
in insight URLs (``/insights/AbC123xy``); ``resolve_insight_id`` maps both to
the numeric id the REST API expects.
"""
from __future__ import annotations

from typing import Any

from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.errors import ToolExecutionError
from mcp_server_posthog.core.formatters import JSONFormatter, with_url

from ..base import ToolSpec, pick, unwrap
from .models import (
    GenerateHogQLInput,
    InsightCreateInput,
    InsightGetAllInput,
    InsightIdInput,
    InsightUpdateInput,
    QueryRunInput,
)


async def resolve_insight_id(context: Context, insight_id: str, project_id: str) -> int:
    """Numeric id for a numeric or short insight id."""
    if insight_id.isdigit():
        return int(insight_id)

    insight = unwrap(
        await context.api.insights(project_id).get_by_short_id(insight_id),
        "find insight",
    )
    if insight is None:
        raise ToolExecutionError(f"Insight with short id '{insight_id}' not found", status=404)
    return int(insight["id"])


def insight_url(context: Context, project_id: str, insight: dict[str, Any]) -> str:
    return f"{context.api.get_project_base_url(project_id)}/insights/{insight.get('short_id')}"


async def get_all_insights(context: Context, params: InsightGetAllInput) -> str:
    project_id = await context.state.get_project_id()
    filters = params.data.model_dump(exclude_none=True) if params.data else None
    insights = unwrap(await context.api.insights(project_id).list(filters), "get insights")
    summaries = [
        with_url(
            pick(insight, "id", "short_id", "name", "description", "favorited", "last_modified_at"),
            insight_url(context, project_id, insight),
        )
        for insight in insights
    ]
    return JSONFormatter.format_compact(summaries)


async def get_insight(context: Context, params: InsightIdInput) -> str:
    project_id = await context.state.get_project_id()
    numeric_id = await resolve_insight_id(context, params.insight_id, project_id)
    insight = unwrap(await context.api.insights(project_id).get(numeric_id), "get insight")
    return JSONFormatter.format_compact(with_url(insight, insight_url(context, project_id, insight)))


async def create_insight(context: Context, params: InsightCreateInput) -> str:
    project_id = await context.state.get_project_id()
    insight = unwrap(
        await context.api.insights(project_id).create(params.data.model_dump(exclude_none=True)),
        "create insight",
    )
    return JSONFormatter.format_compact(with_url(insight, insight_url(context, project_id, insight)))


async def update_insight(context: Context, params: InsightUpdateInput) -> str:
    project_id = await context.state.get_project_id()
    numeric_id = await resolve_insight_id(context, params.insight_id, project_id)
    insight = unwrap(
        await context.api.insights(project_id).update(
            numeric_id, params.data.model_dump(exclude_none=True)
        ),
        "update insight",
    )
    return JSONFormatter.format_compact(with_url(insight, insight_url(context, project_id, insight)))


async def delete_insight(context: Context, params: InsightIdInput) -> str:
    project_id = await context.state.get_project_id()
    numeric_id = await resolve_insight_id(context, params.insight_id, project_id)
    unwrap(await context.api.insights(project_id).delete(numeric_id), "delete insight")
    return JSONFormatter.format_compact(
        {"success": True, "message": f"Insight {params.insight_id} deleted"}
    )


async def query_insight(context: Context, params: InsightIdInput) -> str:
    project_id = await context.state.get_project_id()
    numeric_id = await resolve_insight_id(context, params.insight_id, project_id)
    insights = context.api.insights(project_id)

    insight = unwrap(await insights.get(numeric_id), "get insight")
    if not insight.get("query"):
        raise ToolExecutionError(f"Insight {params.insight_id} has no query to run")

    result = unwrap(await insights.query(insight["query"]), "query insight")
    return JSONFormatter.format_compact({
        "insight": with_url(insight, insight_url(context, project_id, insight)),
        "results": result.get("results"),
    })


async def run_query(context: Context, params: QueryRunInput) -> str:
    project_id = await context.state.get_project_id()
    result = unwrap(await context.api.query(project_id).run(params.query), "run query")
    return JSONFormatter.format_compact(result.get("results"))


async def generate_hogql(context: Context, params: GenerateHogQLInput) -> str:
    project_id = await context.state.get_project_id()
    events = unwrap(
        await context.api.insights(project_id).sql_insight(params.question),
        "execute SQL insight",
    )
    if not events:
        return "Received an empty SQL insight or no data in the stream."
    return JSONFormatter.format_compact(events)


TOOLS = [
    ToolSpec("insights-get-all", InsightGetAllInput, get_all_insights),
    ToolSpec("insight-get", InsightIdInput, get_insight),
    ToolSpec("insight-create-from-query", InsightCreateInput, create_insight),
    ToolSpec("insight-update", InsightUpdateInput, update_insight),
    ToolSpec("insight-delete", InsightIdInput, delete_insight),
    ToolSpec("insight-query", InsightIdInput, query_insight),
    ToolSpec("query-run", QueryRunInput, run_query),
    ToolSpec("query-generate-hogql-from-question", GenerateHogQLInput, generate_hogql),
]
