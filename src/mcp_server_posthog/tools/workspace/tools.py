"""
Organization and project tools.

The switch tools write the active selection straight into the scoped cache;
every later tool call resolves ids through the state manager and so picks
the new selection up.
"""
from __future__ import annotations

from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.formatters import JSONFormatter
from mcp_server_posthog.core.models import EmptyInput

from ..base import ToolSpec, pick, unwrap
from .models import (
    EventDefinitionsInput,
    PropertiesListInput,
    SwitchOrganizationInput,
    SwitchProjectInput,
)


async def get_organizations(context: Context, params: EmptyInput) -> str:
    orgs = unwrap(await context.api.organizations.list(), "get organizations")
    return JSONFormatter.format_compact([org.model_dump() for org in orgs])


async def switch_organization(context: Context, params: SwitchOrganizationInput) -> str:
    org_id = str(params.org_id)
    await context.cache.set("orgId", org_id)
    return f"Switched to organization {org_id}"


async def get_organization_details(context: Context, params: EmptyInput) -> str:
    org_id = await context.state.get_org_id()
    org = unwrap(await context.api.organizations.get(org_id), "get organization details")
    return JSONFormatter.format_compact(org.model_dump())


async def get_projects(context: Context, params: EmptyInput) -> str:
    org_id = await context.state.get_org_id()
    projects = unwrap(
        await context.api.organizations.projects(org_id).list(),
        "get projects",
    )
    return JSONFormatter.format_compact([project.model_dump() for project in projects])


async def switch_project(context: Context, params: SwitchProjectInput) -> str:
    await context.cache.set("projectId", str(params.project_id))
    return f"Switched to project {params.project_id}"


async def list_event_definitions(context: Context, params: EventDefinitionsInput) -> str:
    project_id = await context.state.get_project_id()
    definitions = unwrap(
        await context.api.projects.event_definitions(project_id, search=params.q),
        "get event definitions",
    )
    events = [
        pick(definition, "name", "description", "last_seen_at", "verified")
        for definition in definitions
    ]
    return JSONFormatter.format_compact(events)


async def list_properties(context: Context, params: PropertiesListInput) -> str:
    project_id = await context.state.get_project_id()
    definitions = unwrap(
        await context.api.projects.property_definitions(
            project_id,
            event_names=[params.event_name],
        ),
        f"get property definitions for event {params.event_name}",
    )
    properties = [
        pick(definition, "name", "property_type", "description")
        for definition in definitions
    ]
    return JSONFormatter.format_compact(properties)


TOOLS = [
    ToolSpec("organizations-get", EmptyInput, get_organizations),
    ToolSpec("switch-organization", SwitchOrganizationInput, switch_organization),
    ToolSpec("organization-details-get", EmptyInput, get_organization_details),
    ToolSpec("projects-get", EmptyInput, get_projects),
    ToolSpec("switch-project", SwitchProjectInput, switch_project),
    ToolSpec("event-definitions-list", EventDefinitionsInput, list_event_definitions),
    ToolSpec("properties-list", PropertiesListInput, list_properties),
]
