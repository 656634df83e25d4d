"""
Base Pydantic models for PostHog MCP Server tools.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseToolInput(BaseModel):
    """Base model for all tool inputs."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid',
        use_enum_values=True
    )


class EmptyInput(BaseToolInput):
    """Input for tools that take no parameters."""


class PassthroughModel(BaseModel):
    """Nested payload forwarded to PostHog; unknown fields are kept."""
    model_config = ConfigDict(extra='allow')
