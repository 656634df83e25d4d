"""
Feature flag tools.
"""
from __future__ import annotations

from .models import (
    FeatureFlagCreateInput,
    FeatureFlagDeleteInput,
    FeatureFlagGetDefinitionInput,
    FeatureFlagUpdateInput,
    FlagFilters,
)
from .tools import TOOLS

__all__ = [
    "TOOLS",
    "FeatureFlagGetDefinitionInput",
    "FeatureFlagCreateInput",
    "FeatureFlagUpdateInput",
    "FeatureFlagDeleteInput",
    "FlagFilters",
]
