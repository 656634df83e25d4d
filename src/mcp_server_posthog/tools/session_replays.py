"""
Session replay search.

Builds a HogQL query over ``raw_session_replay_events`` joined to sessions
and events. User supplied strings are embedded as quoted literals with single
quotes doubled; numbers are clamped before being formatted in.
"""
from __future__ import annotations

from typing import Any

from pydantic import Field

from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.formatters import JSONFormatter
from mcp_server_posthog.core.models import BaseToolInput

from .base import ToolSpec, unwrap

MAX_LIMIT = 1000


class SessionReplaysQueryInput(BaseToolInput):
    page_url_contains: str | None = Field(
        default=None,
        description="Only sessions that visited a URL containing this text (case-insensitive)"
    )
    event_name: str = Field(
        default="$pageview",
        description="Event carrying the URL to match"
    )
    min_active_milliseconds: int | None = Field(
        default=None,
        description="Minimum active time in the recording",
        ge=0
    )
    limit: int = Field(default=100, ge=1, le=MAX_LIMIT)
    date_from: str | None = Field(default=None, description="Start of range, e.g. '-7d' or an ISO date")
    date_to: str | None = Field(default=None, description="End of range")
    filter_test_accounts: bool | None = None


def escape_literal(value: str) -> str:
    """Quote-safe body for a single-quoted HogQL string literal."""
    return value.replace("\\", "\\\\").replace("'", "''")


def build_session_replays_query(params: SessionReplaysQueryInput) -> dict[str, Any]:
    where: list[str] = []

    if params.min_active_milliseconds is not None:
        where.append(f"r.active_milliseconds >= {max(0, int(params.min_active_milliseconds))}")

    if params.page_url_contains and params.page_url_contains.strip():
        needle = escape_literal(params.page_url_contains.strip())
        event = escape_literal(params.event_name)
        where.append(f"e.event = '{event}'")
        where.append(f"lower(e.properties[\"$current_url\"]) LIKE lower('%{needle}%')")

    date_range: dict[str, Any] = {}
    if params.date_from is not None:
        date_range["date_from"] = params.date_from
    if params.date_to is not None:
        date_range["date_to"] = params.date_to
    filters: dict[str, Any] = {"dateRange": date_range}
    if params.filter_test_accounts is not None:
        filters["filterTestAccounts"] = params.filter_test_accounts

    where_sql = f"WHERE {' AND '.join(where)}" if where else ""
    limit = min(max(1, params.limit), MAX_LIMIT)

    sql = f"""
SELECT
  r.session_id,
  r.active_milliseconds,
  any(r.click_count) AS click_count,
  any(r.keypress_count) AS keypress_count,
  any(r.start_time) AS start_time,
  any(r.end_time) AS end_time,
  any(s.$session_duration) AS session_duration,
  min(e.timestamp) AS first_event_time,
  max(e.timestamp) AS last_event_time
FROM raw_session_replay_events r
LEFT JOIN sessions s ON s.session_id = r.session_id
LEFT JOIN events e ON e.properties["$session_id"] = r.session_id
{where_sql}
GROUP BY r.session_id, r.active_milliseconds
ORDER BY r.active_milliseconds DESC
LIMIT {limit}
"""

    return {
        "kind": "DataVisualizationNode",
        "source": {"kind": "HogQLQuery", "query": sql, "filters": filters},
    }


async def query_session_replays(context: Context, params: SessionReplaysQueryInput) -> str:
    project_id = await context.state.get_project_id()
    query = build_session_replays_query(params)
    result = unwrap(await context.api.query(project_id).run(query), "query session replays")
    return JSONFormatter.format_compact(result.get("results"))


TOOLS = [
    ToolSpec("session-replays-query", SessionReplaysQueryInput, query_session_replays),
]
