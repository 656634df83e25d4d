"""
Insight and query tools.
"""
from __future__ import annotations

from .models import (
    GenerateHogQLInput,
    InsightCreateInput,
    InsightGetAllInput,
    InsightIdInput,
    InsightUpdateInput,
    QueryRunInput,
)
from .tools import TOOLS, resolve_insight_id

__all__ = [
    "TOOLS",
    "resolve_insight_id",
    "InsightGetAllInput",
    "InsightIdInput",
    "InsightCreateInput",
    "InsightUpdateInput",
    "QueryRunInput",
    "GenerateHogQLInput",
]
