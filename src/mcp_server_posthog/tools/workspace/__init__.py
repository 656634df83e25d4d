"""
Workspace tools: organizations, projects and their schema.
"""
from __future__ import annotations

from .models import (
    EventDefinitionsInput,
    PropertiesListInput,
    SwitchOrganizationInput,
    SwitchProjectInput,
)
from .tools import TOOLS

__all__ = [
    "TOOLS",
    "SwitchOrganizationInput",
    "SwitchProjectInput",
    "EventDefinitionsInput",
    "PropertiesListInput",
]
