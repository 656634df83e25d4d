"""
Pydantic models for organization and project tools.
"""
from __future__ import annotations

from uuid import UUID

from pydantic import Field

from mcp_server_posthog.core.models import BaseToolInput


class SwitchOrganizationInput(BaseToolInput):
    """Input for switching the active organization."""

    org_id: UUID = Field(
        ...,
        description="Organization id (UUID) as returned by organizations-get"
    )


class SwitchProjectInput(BaseToolInput):
    """Input for switching the active project."""

    project_id: int = Field(
        ...,
        description="Project id as returned by projects-get",
        gt=0
    )


class EventDefinitionsInput(BaseToolInput):
    """Input for listing event definitions."""

    q: str | None = Field(
        default=None,
        description="Search query to filter event names. Only use if there are lots of events."
    )


class PropertiesListInput(BaseToolInput):
    """Input for listing the properties of an event."""

    event_name: str = Field(
        ...,
        description="Event name to list properties for (e.g. '$pageview')",
        min_length=1
    )
