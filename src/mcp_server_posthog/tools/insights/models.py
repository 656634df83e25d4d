"""
Pydantic models for insight and query tools.
"""
from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from mcp_server_posthog.core.models import BaseToolInput

# Top-level query node kinds accepted by query-run and insight creation
SUPPORTED_QUERY_KINDS = frozenset({"InsightVizNode", "DataVisualizationNode"})


def _check_query_kind(query: dict[str, Any]) -> dict[str, Any]:
    kind = query.get("kind")
    if kind not in SUPPORTED_QUERY_KINDS:
        allowed = ", ".join(sorted(SUPPORTED_QUERY_KINDS))
        raise ValueError(f"Unsupported query kind {kind!r}; expected one of: {allowed}")
    if not isinstance(query.get("source"), dict):
        raise ValueError("Query must have a 'source' object")
    return query


class ListInsightsParams(BaseToolInput):
    """Optional filters for listing insights."""

    limit: int | None = Field(default=None, ge=1, le=100)
    offset: int | None = Field(default=None, ge=0)
    saved: bool | None = None
    favorited: bool | None = None
    search: str | None = Field(default=None, description="Search in insight names")


class InsightGetAllInput(BaseToolInput):
    data: ListInsightsParams | None = None


class InsightIdInput(BaseToolInput):
    """Input addressing one insight."""

    insight_id: str = Field(
        ...,
        description="Numeric insight id or the short id from the insight URL",
        min_length=1
    )


class CreateInsightData(BaseToolInput):
    name: str = Field(..., description="Insight name")
    query: dict[str, Any] = Field(
        ...,
        description="Query node: an InsightVizNode (trends, funnels) or a DataVisualizationNode wrapping a HogQLQuery"
    )
    description: str | None = None
    saved: bool = True
    favorited: bool = False
    tags: list[str] | None = None

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: dict[str, Any]) -> dict[str, Any]:
        return _check_query_kind(v)


class InsightCreateInput(BaseToolInput):
    data: CreateInsightData


class UpdateInsightData(BaseToolInput):
    """Fields to change on an insight; omitted fields are left as they are."""

    name: str | None = None
    description: str | None = None
    query: dict[str, Any] | None = None
    favorited: bool | None = None
    tags: list[str] | None = None

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: dict[str, Any] | None) -> dict[str, Any] | None:
        if v is None:
            return v
        return _check_query_kind(v)


class InsightUpdateInput(InsightIdInput):
    data: UpdateInsightData


class QueryRunInput(BaseToolInput):
    """Input for running an ad-hoc query."""

    query: dict[str, Any] = Field(
        ...,
        description="Query node: an InsightVizNode (trends, funnels) or a DataVisualizationNode wrapping a HogQLQuery"
    )

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: dict[str, Any]) -> dict[str, Any]:
        return _check_query_kind(v)


class GenerateHogQLInput(BaseToolInput):
    """Input for turning a question into HogQL."""

    question: str = Field(
        ...,
        description="Your natural language question describing the SQL insight (max 1000 characters).",
        min_length=1,
        max_length=1000
    )
