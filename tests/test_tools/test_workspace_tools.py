"""
Tests for organization and project tools.
"""
from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from conftest import ORG_ID, PROJECT_ID

from mcp_server_posthog.core.errors import ToolExecutionError
from mcp_server_posthog.core.models import EmptyInput
from mcp_server_posthog.tools.workspace.models import (
    EventDefinitionsInput,
    PropertiesListInput,
    SwitchOrganizationInput,
    SwitchProjectInput,
)
from mcp_server_posthog.tools.workspace.tools import (
    get_organization_details,
    get_organizations,
    get_projects,
    list_event_definitions,
    list_properties,
    switch_organization,
    switch_project,
)

OTHER_ORG = "0190a8e6-2222-7000-8000-000000000002"


class TestOrganizations:
    """Tests for organization tools."""

    async def test_list(self, posthog, context):
        posthog.add("GET", "/api/organizations/", {"results": [{"id": ORG_ID, "name": "Acme"}]})

        result = json.loads(await get_organizations(context, EmptyInput()))

        assert result == [{"id": ORG_ID, "name": "Acme"}]

    async def test_list_failure(self, posthog, context):
        posthog.add("GET", "/api/organizations/", {"detail": "boom"}, status=500)

        with pytest.raises(ToolExecutionError, match="Failed to get organizations: .*boom") as exc:
            await get_organizations(context, EmptyInput())

        assert exc.value.status == 500

    async def test_switch(self, context):
        message = await switch_organization(context, SwitchOrganizationInput(org_id=OTHER_ORG))

        assert message == f"Switched to organization {OTHER_ORG}"
        assert await context.cache.get("orgId") == OTHER_ORG

    async def test_switch_keeps_project(self, context):
        await switch_organization(context, SwitchOrganizationInput(org_id=OTHER_ORG))

        assert await context.cache.get("projectId") == PROJECT_ID

    def test_switch_requires_uuid(self):
        with pytest.raises(ValidationError):
            SwitchOrganizationInput(org_id="not-a-uuid")

    async def test_details_uses_active_org(self, posthog, context):
        posthog.add("GET", f"/api/organizations/{ORG_ID}/", {"id": ORG_ID, "name": "Acme"})

        result = json.loads(await get_organization_details(context, EmptyInput()))

        assert result["name"] == "Acme"


class TestProjects:
    """Tests for project tools."""

    async def test_list_in_active_org(self, posthog, context):
        posthog.add(
            "GET",
            f"/api/organizations/{ORG_ID}/projects/",
            {"results": [{"id": 42, "name": "Web"}, {"id": 43, "name": "App"}]},
        )

        result = json.loads(await get_projects(context, EmptyInput()))

        assert [p["id"] for p in result] == [42, 43]

    async def test_switch(self, context):
        message = await switch_project(context, SwitchProjectInput(project_id=7))

        assert message == "Switched to project 7"
        assert await context.cache.get("projectId") == "7"
        assert await context.state.get_project_id() == "7"

    def test_switch_rejects_non_positive(self):
        with pytest.raises(ValidationError):
            SwitchProjectInput(project_id=0)


class TestDefinitions:
    """Tests for event and property listing."""

    async def test_event_definitions(self, posthog, context):
        path = f"/api/projects/{PROJECT_ID}/event_definitions/"
        posthog.add(
            "GET",
            path,
            {"results": [{"name": "$pageview", "description": None, "id": "x", "volume_30_day": 9}]},
        )

        result = json.loads(await list_event_definitions(context, EventDefinitionsInput(q="page")))

        assert result == [{"name": "$pageview", "description": None}]
        assert posthog.calls("GET", path)[0].url.params["search"] == "page"

    async def test_properties(self, posthog, context):
        path = f"/api/projects/{PROJECT_ID}/property_definitions/"
        posthog.add(
            "GET",
            path,
            {"results": [{"name": "$browser", "property_type": "String", "id": "p1"}]},
        )

        result = json.loads(await list_properties(context, PropertiesListInput(event_name="$pageview")))

        assert result == [{"name": "$browser", "property_type": "String"}]
        params = posthog.calls("GET", path)[0].url.params
        assert json.loads(params["event_names"]) == ["$pageview"]
        assert params["type"] == "event"

    async def test_properties_failure_names_event(self, posthog, context):
        posthog.add(
            "GET",
            f"/api/projects/{PROJECT_ID}/property_definitions/",
            {"detail": "nope"},
            status=403,
        )

        with pytest.raises(ToolExecutionError, match=r"property definitions for event \$pageview"):
            await list_properties(context, PropertiesListInput(event_name="$pageview"))
