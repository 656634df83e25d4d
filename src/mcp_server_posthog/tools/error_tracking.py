"""
Error tracking tools.

Both tools run an ``ErrorTrackingQuery`` through the query endpoint; the
date range defaults to the last seven days.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Literal
from uuid import UUID

from pydantic import Field

from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.formatters import JSONFormatter
from mcp_server_posthog.core.models import BaseToolInput

from .base import ToolSpec, unwrap

DEFAULT_LOOKBACK = timedelta(days=7)


class ListErrorsInput(BaseToolInput):
    order_by: Literal["occurrences", "first_seen", "last_seen", "users", "sessions"] = Field(
        default="occurrences",
        description="Field to order issues by"
    )
    order_direction: Literal["ASC", "DESC"] = "DESC"
    date_from: datetime | None = Field(default=None, description="Start of range (default: 7 days ago)")
    date_to: datetime | None = Field(default=None, description="End of range (default: now)")
    filter_test_accounts: bool = True
    status: Literal["active", "resolved", "suppressed", "all"] = "active"


class ErrorDetailsInput(BaseToolInput):
    issue_id: UUID = Field(..., description="Issue id as returned by list-errors")
    date_from: datetime | None = Field(default=None, description="Start of range (default: 7 days ago)")
    date_to: datetime | None = Field(default=None, description="End of range (default: now)")


def _date_range(date_from: datetime | None, date_to: datetime | None) -> dict[str, str]:
    end = date_to or datetime.now(timezone.utc)
    start = date_from or end - DEFAULT_LOOKBACK
    return {"date_from": start.isoformat(), "date_to": end.isoformat()}


async def list_errors(context: Context, params: ListErrorsInput) -> str:
    project_id = await context.state.get_project_id()
    query: dict[str, Any] = {
        "kind": "ErrorTrackingQuery",
        "orderBy": params.order_by,
        "orderDirection": params.order_direction,
        "dateRange": _date_range(params.date_from, params.date_to),
        "volumeResolution": 1,
        "filterTestAccounts": params.filter_test_accounts,
        "status": params.status,
    }
    result = unwrap(await context.api.query(project_id).run(query), "list errors")
    return JSONFormatter.format_compact(result.get("results"))


async def error_details(context: Context, params: ErrorDetailsInput) -> str:
    project_id = await context.state.get_project_id()
    query: dict[str, Any] = {
        "kind": "ErrorTrackingQuery",
        "issueId": str(params.issue_id),
        "dateRange": _date_range(params.date_from, params.date_to),
        "volumeResolution": 0,
    }
    result = unwrap(await context.api.query(project_id).run(query), "get error details")
    return JSONFormatter.format_compact(result.get("results"))


TOOLS = [
    ToolSpec("list-errors", ListErrorsInput, list_errors),
    ToolSpec("error-details", ErrorDetailsInput, error_details),
]
