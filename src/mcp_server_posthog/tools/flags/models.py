"""
Pydantic models for feature flag tools.
"""
from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator

from mcp_server_posthog.core.models import BaseToolInput, PassthroughModel


class FlagConditionGroup(PassthroughModel):
    """One release condition: matching properties and a rollout percentage."""

    properties: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Property filters, e.g. {'key': 'email', 'value': '@posthog.com', 'operator': 'icontains', 'type': 'person'}"
    )
    rollout_percentage: float | None = Field(
        default=None,
        description="Percentage of matching users that get the flag",
        ge=0,
        le=100
    )


class FlagFilters(PassthroughModel):
    """Release conditions of a feature flag."""

    groups: list[FlagConditionGroup] = Field(
        default_factory=list,
        description="Condition groups; a user matching any group gets the flag"
    )


class FeatureFlagGetDefinitionInput(BaseToolInput):
    """Input for fetching one feature flag."""

    flag_id: int | None = Field(default=None, description="Numeric flag id", gt=0)
    flag_key: str | None = Field(default=None, description="Flag key")

    @model_validator(mode="after")
    def require_id_or_key(self) -> FeatureFlagGetDefinitionInput:
        if self.flag_id is None and not self.flag_key:
            raise ValueError("Either flag_id or flag_key must be provided")
        return self


class FeatureFlagCreateInput(BaseToolInput):
    """Input for creating a feature flag."""

    name: str = Field(..., description="Human readable flag name")
    key: str = Field(..., description="Unique flag key used in code", min_length=1)
    description: str = Field(default="", description="What the flag controls")
    filters: FlagFilters = Field(..., description="Release conditions")
    active: bool = Field(default=True, description="Whether the flag is enabled")
    tags: list[str] | None = Field(default=None, description="Tags to attach")


class FeatureFlagUpdateData(BaseToolInput):
    """Fields to change on a feature flag; omitted fields are left as they are."""

    name: str | None = None
    description: str | None = None
    filters: FlagFilters | None = None
    active: bool | None = None
    tags: list[str] | None = None


class FeatureFlagUpdateInput(BaseToolInput):
    """Input for updating a feature flag."""

    flag_key: str = Field(..., description="Key of the flag to update")
    data: FeatureFlagUpdateData


class FeatureFlagDeleteInput(BaseToolInput):
    """Input for deleting a feature flag."""

    flag_key: str = Field(..., description="Key of the flag to delete")
