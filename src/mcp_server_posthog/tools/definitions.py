"""
Tool definitions: titles, descriptions, feature groups and required scopes.

Feature groups let operators expose a subset of tools
(``POSTHOG_MCP_FEATURES=flags,insights``); required scopes hide tools the
caller's personal API key could not use anyway.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

_READ_ONLY = {"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True, "openWorldHint": True}
_WRITE = {"readOnlyHint": False, "destructiveHint": False, "idempotentHint": False, "openWorldHint": True}
_IDEMPOTENT_WRITE = {"readOnlyHint": False, "destructiveHint": False, "idempotentHint": True, "openWorldHint": True}
_DESTRUCTIVE = {"readOnlyHint": False, "destructiveHint": True, "idempotentHint": True, "openWorldHint": True}


@dataclass(frozen=True)
class ToolDefinition:
    """Static metadata for one tool."""
    title: str
    description: str
    feature: str
    required_scopes: tuple[str, ...] = ()
    annotations: dict[str, Any] = field(default_factory=lambda: dict(_READ_ONLY))

    def annotations_with_title(self) -> dict[str, Any]:
        return {"title": self.title, **self.annotations}


TOOL_DEFINITIONS: dict[str, ToolDefinition] = {
    # Workspace
    "organizations-get": ToolDefinition(
        title="Get organizations",
        description="List the organizations the user belongs to.",
        feature="workspace",
        required_scopes=("organization:read",),
    ),
    "switch-organization": ToolDefinition(
        title="Switch active organization",
        description=(
            "Change the active organization. Use organizations-get first to find "
            "the organization id, and confirm the switch with the user."
        ),
        feature="workspace",
        required_scopes=("organization:read",),
        annotations=_IDEMPOTENT_WRITE,
    ),
    "organization-details-get": ToolDefinition(
        title="Get organization details",
        description="Get the details of the active organization.",
        feature="workspace",
        required_scopes=("organization:read",),
    ),
    "projects-get": ToolDefinition(
        title="Get projects",
        description="List the projects in the active organization.",
        feature="workspace",
        required_scopes=("project:read",),
    ),
    "switch-project": ToolDefinition(
        title="Switch active project",
        description=(
            "Change the active project. Use projects-get first to find the "
            "project id, and confirm the switch with the user."
        ),
        feature="workspace",
        required_scopes=("project:read",),
        annotations=_IDEMPOTENT_WRITE,
    ),
    "event-definitions-list": ToolDefinition(
        title="List event definitions",
        description="List the event names tracked in the active project, optionally filtered by a search string.",
        feature="workspace",
        required_scopes=("event_definition:read",),
    ),
    "properties-list": ToolDefinition(
        title="List event properties",
        description="List the properties seen on a given event in the active project.",
        feature="workspace",
        required_scopes=("property_definition:read",),
    ),
    # Feature flags
    "feature-flag-get-definition": ToolDefinition(
        title="Get feature flag definition",
        description="Get the definition of a feature flag by id or key.",
        feature="flags",
        required_scopes=("feature_flag:read",),
    ),
    "feature-flag-get-all": ToolDefinition(
        title="Get all feature flags",
        description="List the feature flags in the active project.",
        feature="flags",
        required_scopes=("feature_flag:read",),
    ),
    "create-feature-flag": ToolDefinition(
        title="Create feature flag",
        description="Create a feature flag with release conditions in the active project.",
        feature="flags",
        required_scopes=("feature_flag:write",),
        annotations=_WRITE,
    ),
    "update-feature-flag": ToolDefinition(
        title="Update feature flag",
        description="Update a feature flag, identified by key.",
        feature="flags",
        required_scopes=("feature_flag:write",),
        annotations=_IDEMPOTENT_WRITE,
    ),
    "delete-feature-flag": ToolDefinition(
        title="Delete feature flag",
        description="Delete a feature flag, identified by key.",
        feature="flags",
        required_scopes=("feature_flag:write",),
        annotations=_DESTRUCTIVE,
    ),
    # Dashboards
    "dashboards-get-all": ToolDefinition(
        title="Get all dashboards",
        description="List dashboards in the active project, optionally filtered by search, pinned state or page.",
        feature="dashboards",
        required_scopes=("dashboard:read",),
    ),
    "dashboard-get": ToolDefinition(
        title="Get dashboard",
        description="Get a dashboard and its tiles by id.",
        feature="dashboards",
        required_scopes=("dashboard:read",),
    ),
    "dashboard-create": ToolDefinition(
        title="Create dashboard",
        description="Create a dashboard in the active project.",
        feature="dashboards",
        required_scopes=("dashboard:write",),
        annotations=_WRITE,
    ),
    "dashboard-update": ToolDefinition(
        title="Update dashboard",
        description="Update a dashboard's name, description, tags or pinned state.",
        feature="dashboards",
        required_scopes=("dashboard:write",),
        annotations=_IDEMPOTENT_WRITE,
    ),
    "dashboard-delete": ToolDefinition(
        title="Delete dashboard",
        description="Delete a dashboard by id.",
        feature="dashboards",
        required_scopes=("dashboard:write",),
        annotations=_DESTRUCTIVE,
    ),
    "add-insight-to-dashboard": ToolDefinition(
        title="Add insight to dashboard",
        description="Add an existing insight to a dashboard.",
        feature="dashboards",
        required_scopes=("dashboard:write", "insight:read"),
        annotations=_IDEMPOTENT_WRITE,
    ),
    # Insights and queries
    "insights-get-all": ToolDefinition(
        title="Get all insights",
        description="List saved insights in the active project, optionally filtered by search.",
        feature="insights",
        required_scopes=("insight:read",),
    ),
    "insight-get": ToolDefinition(
        title="Get insight",
        description="Get a saved insight by numeric id or short id.",
        feature="insights",
        required_scopes=("insight:read",),
    ),
    "insight-create-from-query": ToolDefinition(
        title="Create insight from query",
        description=(
            "Save a query as an insight. Run the query with query-run first to "
            "check it returns what the user expects."
        ),
        feature="insights",
        required_scopes=("insight:write",),
        annotations=_WRITE,
    ),
    "insight-update": ToolDefinition(
        title="Update insight",
        description="Update a saved insight's name, description, query or tags.",
        feature="insights",
        required_scopes=("insight:write",),
        annotations=_IDEMPOTENT_WRITE,
    ),
    "insight-delete": ToolDefinition(
        title="Delete insight",
        description="Delete a saved insight by numeric id or short id.",
        feature="insights",
        required_scopes=("insight:write",),
        annotations=_DESTRUCTIVE,
    ),
    "insight-query": ToolDefinition(
        title="Query insight",
        description="Run a saved insight's query and return its results.",
        feature="insights",
        required_scopes=("insight:read", "query:read"),
    ),
    "query-run": ToolDefinition(
        title="Run query",
        description="Run a trends, funnels or HogQL query against the active project.",
        feature="insights",
        required_scopes=("query:read",),
    ),
    "query-generate-hogql-from-question": ToolDefinition(
        title="Generate HogQL from question",
        description="Ask PostHog AI to write and run a HogQL query answering a natural language question.",
        feature="insights",
        required_scopes=("query:read",),
        annotations={**_READ_ONLY, "idempotentHint": False},
    ),
    # Experiments
    "experiment-get-all": ToolDefinition(
        title="Get all experiments",
        description="List the experiments in the active project.",
        feature="experiments",
        required_scopes=("experiment:read",),
    ),
    "experiment-get": ToolDefinition(
        title="Get experiment",
        description="Get an experiment by id.",
        feature="experiments",
        required_scopes=("experiment:read",),
    ),
    # Error tracking
    "list-errors": ToolDefinition(
        title="List errors",
        description="List error tracking issues in the active project, ordered by occurrences by default.",
        feature="error-tracking",
        required_scopes=("error_tracking:read",),
    ),
    "error-details": ToolDefinition(
        title="Get error details",
        description="Get occurrence details for one error tracking issue.",
        feature="error-tracking",
        required_scopes=("error_tracking:read",),
    ),
    # LLM analytics
    "get-llm-total-costs-for-project": ToolDefinition(
        title="Get LLM costs",
        description="Total LLM generation cost per day, broken down by model, for a project.",
        feature="llm-analytics",
        required_scopes=("query:read",),
    ),
    # Session replays
    "session-replays-query": ToolDefinition(
        title="Query session replays",
        description="Find session recordings by visited URL, activity and date range.",
        feature="session-replays",
        required_scopes=("session_recording:read", "query:read"),
    ),
    # Documentation
    "docs-search": ToolDefinition(
        title="Search docs",
        description="Search the PostHog documentation.",
        feature="docs",
    ),
}


def get_tool_definition(name: str) -> ToolDefinition:
    """Return the definition for ``name``; unknown names raise ``KeyError``."""
    try:
        return TOOL_DEFINITIONS[name]
    except KeyError:
        raise KeyError(f"Tool definition not found for: {name}") from None


def get_tools_for_features(features: list[str] | None = None) -> list[str]:
    """Tool names enabled by ``features``.

    None or an empty list enables every tool. Unknown feature names are ignored.
    """
    if not features:
        return list(TOOL_DEFINITIONS)
    wanted = set(features)
    return [name for name, definition in TOOL_DEFINITIONS.items() if definition.feature in wanted]


def has_scopes(granted: list[str], required: tuple[str, ...] | list[str]) -> bool:
    """Whether ``granted`` satisfies every scope in ``required``.

    ``*`` grants everything and ``<object>:write`` implies ``<object>:read``.
    """
    if "*" in granted:
        return True
    available = set(granted)
    for scope in granted:
        obj, _, action = scope.partition(":")
        if action == "write":
            available.add(f"{obj}:read")
    return all(scope in available for scope in required)
