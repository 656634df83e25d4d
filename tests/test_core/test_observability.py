"""
Tests for logging helpers.
"""
from __future__ import annotations

import pytest

from mcp_server_posthog.core.observability import (
    ToolCall,
    _protect_credentials,
    mask_scope,
    observe_tool,
)


class TestMaskScope:
    """Tests for mask_scope."""

    def test_long_scope_shortened(self):
        assert mask_scope("a" * 64) == "aaaaaaaaaaaa..."

    def test_short_and_missing(self):
        assert mask_scope("abc") == "abc"
        assert mask_scope(None) is None


class TestProtectCredentials:
    """Tests for the credential processor."""

    def test_scope_masked_and_tokens_redacted(self):
        event = _protect_credentials(
            None, "info", {"event": "x", "scope": "b" * 64, "api_token": "phx_secret"}
        )

        assert event == {"event": "x", "scope": "bbbbbbbbbbbb...", "api_token": "***"}

    def test_other_fields_untouched(self):
        assert _protect_credentials(None, "info", {"event": "x", "path": "/api/"}) == {
            "event": "x",
            "path": "/api/",
        }


class TestObserveTool:
    """Tests for observe_tool."""

    async def test_yields_call(self):
        async with observe_tool("dashboard-get", "dashboards", "scope") as call:
            assert isinstance(call, ToolCall)
            assert call.tool == "dashboard-get"

        assert call.duration_ms >= 0

    async def test_reraises(self):
        with pytest.raises(RuntimeError, match="boom"):
            async with observe_tool("query-run", "insights"):
                raise RuntimeError("boom")

    async def test_missing_feature_defaults(self):
        async with observe_tool("x", "") as call:
            assert call.feature == "core"
