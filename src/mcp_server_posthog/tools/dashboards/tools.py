"""
Dashboard tools.
"""
from __future__ import annotations

from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.formatters import JSONFormatter, with_url

from ..base import ToolSpec, pick, unwrap
from ..insights.tools import insight_url, resolve_insight_id
from .models import (
    DashboardAddInsightInput,
    DashboardCreateInput,
    DashboardGetAllInput,
    DashboardIdInput,
    DashboardUpdateInput,
)


def dashboard_url(context: Context, project_id: str, dashboard_id: int) -> str:
    return f"{context.api.get_project_base_url(project_id)}/dashboard/{dashboard_id}"


async def get_all_dashboards(context: Context, params: DashboardGetAllInput) -> str:
    project_id = await context.state.get_project_id()
    filters = params.data.model_dump(exclude_none=True) if params.data else None
    dashboards = unwrap(await context.api.dashboards(project_id).list(filters), "get dashboards")
    summaries = [
        with_url(
            pick(dashboard, "id", "name", "description", "pinned", "tags"),
            dashboard_url(context, project_id, dashboard["id"]),
        )
        for dashboard in dashboards
    ]
    return JSONFormatter.format_compact(summaries)


async def get_dashboard(context: Context, params: DashboardIdInput) -> str:
    project_id = await context.state.get_project_id()
    dashboard = unwrap(
        await context.api.dashboards(project_id).get(params.dashboard_id),
        "get dashboard",
    )
    return JSONFormatter.format_compact(
        with_url(dashboard, dashboard_url(context, project_id, params.dashboard_id))
    )


async def create_dashboard(context: Context, params: DashboardCreateInput) -> str:
    project_id = await context.state.get_project_id()
    dashboard = unwrap(
        await context.api.dashboards(project_id).create(params.data.model_dump(exclude_none=True)),
        "create dashboard",
    )
    return JSONFormatter.format_compact(
        with_url(dashboard, dashboard_url(context, project_id, dashboard["id"]))
    )


async def update_dashboard(context: Context, params: DashboardUpdateInput) -> str:
    project_id = await context.state.get_project_id()
    dashboard = unwrap(
        await context.api.dashboards(project_id).update(
            params.dashboard_id, params.data.model_dump(exclude_none=True)
        ),
        "update dashboard",
    )
    return JSONFormatter.format_compact(
        with_url(dashboard, dashboard_url(context, project_id, params.dashboard_id))
    )


async def delete_dashboard(context: Context, params: DashboardIdInput) -> str:
    project_id = await context.state.get_project_id()
    unwrap(await context.api.dashboards(project_id).delete(params.dashboard_id), "delete dashboard")
    return JSONFormatter.format_compact(
        {"success": True, "message": f"Dashboard {params.dashboard_id} deleted"}
    )


async def add_insight_to_dashboard(context: Context, params: DashboardAddInsightInput) -> str:
    project_id = await context.state.get_project_id()
    data = params.data
    numeric_id = await resolve_insight_id(context, data.insight_id, project_id)

    insight = unwrap(
        await context.api.dashboards(project_id).add_insight(data.dashboard_id, numeric_id),
        "add insight to dashboard",
    )
    return JSONFormatter.format_compact({
        **insight,
        "dashboard_url": dashboard_url(context, project_id, data.dashboard_id),
        "insight_url": insight_url(context, project_id, insight),
    })


TOOLS = [
    ToolSpec("dashboards-get-all", DashboardGetAllInput, get_all_dashboards),
    ToolSpec("dashboard-get", DashboardIdInput, get_dashboard),
    ToolSpec("dashboard-create", DashboardCreateInput, create_dashboard),
    ToolSpec("dashboard-update", DashboardUpdateInput, update_dashboard),
    ToolSpec("dashboard-delete", DashboardIdInput, delete_dashboard),
    ToolSpec("add-insight-to-dashboard", DashboardAddInsightInput, add_insight_to_dashboard),
]
