"""LLM analytics tools."""
from __future__ import annotations

from pydantic import Field

from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.formatters import JSONFormatter
from mcp_server_posthog.core.models import BaseToolInput

from .base import ToolSpec, unwrap


class LLMCostsInput(BaseToolInput):
    project_id: int = Field(..., description="Project to report on", gt=0)
    days: int = Field(default=6, description="Number of days back to include", ge=1, le=365)


async def get_llm_costs(context: Context, params: LLMCostsInput) -> str:
    # Daily sum of generation cost, one series per model
    query = {
        "kind": "TrendsQuery",
        "dateRange": {"date_from": f"-{params.days}d", "date_to": None},
        "filterTestAccounts": True,
        "series": [
            {
                "kind": "EventsNode",
                "event": "$ai_generation",
                "name": "$ai_generation",
                "math": "sum",
                "math_property": "$ai_total_cost_usd",
            }
        ],
        "breakdownFilter": {"breakdown_type": "event", "breakdown": "$ai_model"},
    }
    result = unwrap(
        await context.api.query(str(params.project_id)).run(query),
        "get LLM costs",
    )
    return JSONFormatter.format_compact(result.get("results"))


TOOLS = [
    ToolSpec("get-llm-total-costs-for-project", LLMCostsInput, get_llm_costs),
]
