"""Experiment tools (read only)."""
from __future__ import annotations

from pydantic import Field

from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.formatters import JSONFormatter
from mcp_server_posthog.core.models import BaseToolInput, EmptyInput

from .base import ToolSpec, unwrap


class ExperimentGetInput(BaseToolInput):
    experiment_id: int = Field(..., description="The ID of the experiment to retrieve", gt=0)


async def get_all_experiments(context: Context, params: EmptyInput) -> str:
    project_id = await context.state.get_project_id()
    experiments = unwrap(await context.api.experiments(project_id).list(), "get experiments")
    return JSONFormatter.format_compact(experiments)


async def get_experiment(context: Context, params: ExperimentGetInput) -> str:
    project_id = await context.state.get_project_id()
    experiment = unwrap(
        await context.api.experiments(project_id).get(params.experiment_id),
        "get experiment",
    )
    return JSONFormatter.format_compact(experiment)


TOOLS = [
    ToolSpec("experiment-get-all", EmptyInput, get_all_experiments),
    ToolSpec("experiment-get", ExperimentGetInput, get_experiment),
]
