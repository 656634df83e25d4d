"""
Dashboard tools.
"""
from __future__ import annotations

from .models import (
    DashboardAddInsightInput,
    DashboardCreateInput,
    DashboardGetAllInput,
    DashboardIdInput,
    DashboardUpdateInput,
)
from .tools import TOOLS

__all__ = [
    "TOOLS",
    "DashboardGetAllInput",
    "DashboardIdInput",
    "DashboardCreateInput",
    "DashboardUpdateInput",
    "DashboardAddInsightInput",
]
