"""
Response formatting for tool output.

Tool results are JSON text so agents can parse them back reliably.
"""
from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel


def _default_serializer(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, Enum):
        return obj.value
    return str(obj)


class JSONFormatter:
    """JSON formatting utilities."""

    @staticmethod
    def format_compact(data: Any) -> str:
        """Format data as compact JSON (no indentation)."""
        return json.dumps(data, separators=(",", ":"), default=_default_serializer)


def with_url(data: dict[str, Any], url: str, key: str = "url") -> dict[str, Any]:
    """Copy of ``data`` with a UI link added."""
    return {**data, key: url}
