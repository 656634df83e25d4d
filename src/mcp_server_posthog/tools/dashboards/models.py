"""
Pydantic models for dashboard tools.
"""
from __future__ import annotations

from pydantic import Field

from mcp_server_posthog.core.models import BaseToolInput


class ListDashboardsParams(BaseToolInput):
    limit: int | None = Field(default=None, ge=1, le=100)
    offset: int | None = Field(default=None, ge=0)
    search: str | None = Field(default=None, description="Search in dashboard names")
    pinned: bool | None = Field(default=None, description="Only pinned dashboards")


class DashboardGetAllInput(BaseToolInput):
    data: ListDashboardsParams | None = None


class DashboardIdInput(BaseToolInput):
    dashboard_id: int = Field(..., description="Numeric dashboard id", gt=0)


class CreateDashboardData(BaseToolInput):
    name: str = Field(..., description="Dashboard name", min_length=1)
    description: str | None = None
    pinned: bool = False
    tags: list[str] | None = None


class DashboardCreateInput(BaseToolInput):
    data: CreateDashboardData


class UpdateDashboardData(BaseToolInput):
    """Fields to change on a dashboard; omitted fields are left as they are."""

    name: str | None = None
    description: str | None = None
    pinned: bool | None = None
    tags: list[str] | None = None


class DashboardUpdateInput(DashboardIdInput):
    data: UpdateDashboardData


class AddInsightData(BaseToolInput):
    insight_id: str = Field(
        ...,
        description="Numeric insight id or the short id from the insight URL",
        min_length=1
    )
    dashboard_id: int = Field(..., description="Numeric dashboard id", gt=0)


class DashboardAddInsightInput(BaseToolInput):
    data: AddInsightData
