"""
Tests for experiment, error tracking, LLM analytics, session replay and docs tools.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest
from pydantic import ValidationError

from conftest import PROJECT_ID

from mcp_server_posthog.core.errors import ToolExecutionError
from mcp_server_posthog.core.models import EmptyInput
from mcp_server_posthog.tools import docs
from mcp_server_posthog.tools.docs import DocsSearchInput, search_docs, search_inkeep
from mcp_server_posthog.tools.error_tracking import (
    ErrorDetailsInput,
    ListErrorsInput,
    error_details,
    list_errors,
)
from mcp_server_posthog.tools.experiments import (
    ExperimentGetInput,
    get_all_experiments,
    get_experiment,
)
from mcp_server_posthog.tools.llm_analytics import LLMCostsInput, get_llm_costs
from mcp_server_posthog.tools.session_replays import (
    SessionReplaysQueryInput,
    build_session_replays_query,
    escape_literal,
    query_session_replays,
)

QUERY = f"/api/environments/{PROJECT_ID}/query/"
ISSUE_ID = "01932c59-aaaa-7000-8000-0000000000aa"


def sent_query(posthog) -> dict:
    return posthog.body(posthog.calls("POST", QUERY)[0])["query"]


class TestExperiments:
    """Tests for experiment tools."""

    async def test_get_all(self, posthog, context):
        posthog.add("GET", f"/api/projects/{PROJECT_ID}/experiments/", {"results": [{"id": 1}]})

        assert json.loads(await get_all_experiments(context, EmptyInput())) == [{"id": 1}]

    async def test_get(self, posthog, context):
        posthog.add("GET", f"/api/projects/{PROJECT_ID}/experiments/5/", {"id": 5, "name": "CTA"})

        result = json.loads(await get_experiment(context, ExperimentGetInput(experiment_id=5)))

        assert result["name"] == "CTA"


class TestErrorTracking:
    """Tests for error tracking tools."""

    async def test_list_defaults(self, posthog, context):
        posthog.add("POST", QUERY, {"results": [{"id": ISSUE_ID}]})

        result = json.loads(await list_errors(context, ListErrorsInput()))

        assert result == [{"id": ISSUE_ID}]
        query = sent_query(posthog)
        assert query["kind"] == "ErrorTrackingQuery"
        assert query["orderBy"] == "occurrences"
        assert query["status"] == "active"
        start = datetime.fromisoformat(query["dateRange"]["date_from"])
        end = datetime.fromisoformat(query["dateRange"]["date_to"])
        assert (end - start).days == 7

    async def test_list_explicit_range(self, posthog, context):
        posthog.add("POST", QUERY, {"results": []})
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        end = datetime(2024, 1, 2, tzinfo=timezone.utc)

        await list_errors(context, ListErrorsInput(date_from=start, date_to=end, order_by="users"))

        query = sent_query(posthog)
        assert query["dateRange"] == {"date_from": start.isoformat(), "date_to": end.isoformat()}
        assert query["orderBy"] == "users"

    def test_list_rejects_unknown_order(self):
        with pytest.raises(ValidationError):
            ListErrorsInput(order_by="nope")

    async def test_details(self, posthog, context):
        posthog.add("POST", QUERY, {"results": [{"id": ISSUE_ID, "occurrences": 4}]})

        await error_details(context, ErrorDetailsInput(issue_id=ISSUE_ID))

        query = sent_query(posthog)
        assert query["issueId"] == ISSUE_ID
        assert query["volumeResolution"] == 0


class TestLLMCosts:
    """Tests for get-llm-total-costs-for-project."""

    async def test_trends_query(self, posthog, context):
        path = "/api/environments/7/query/"
        posthog.add("POST", path, {"results": [{"breakdown_value": "gpt-4o", "data": [0.1, 0.2]}]})

        result = json.loads(await get_llm_costs(context, LLMCostsInput(project_id=7)))

        assert result[0]["breakdown_value"] == "gpt-4o"
        query = posthog.body(posthog.calls("POST", path)[0])["query"]
        assert query["kind"] == "TrendsQuery"
        assert query["dateRange"]["date_from"] == "-6d"
        series = query["series"][0]
        assert series["event"] == "$ai_generation"
        assert series["math_property"] == "$ai_total_cost_usd"
        assert query["breakdownFilter"]["breakdown"] == "$ai_model"

    async def test_custom_days(self, posthog, context):
        path = "/api/environments/7/query/"
        posthog.add("POST", path, {"results": []})

        await get_llm_costs(context, LLMCostsInput(project_id=7, days=30))

        assert posthog.body(posthog.requests[0])["query"]["dateRange"]["date_from"] == "-30d"


class TestSessionReplays:
    """Tests for the session replay query builder and tool."""

    def test_escape_literal(self):
        assert escape_literal("it's") == "it''s"

    def test_escape_literal_backslash(self):
        # a trailing backslash must not swallow the doubled quote
        assert escape_literal("a\\'") == "a\\\\''"
        assert escape_literal("\\") == "\\\\"

    def test_default_query(self):
        query = build_session_replays_query(SessionReplaysQueryInput())

        assert query["kind"] == "DataVisualizationNode"
        sql = query["source"]["query"]
        assert "FROM raw_session_replay_events r" in sql
        assert "WHERE" not in sql
        assert "LIMIT 100" in sql
        assert query["source"]["filters"] == {"dateRange": {}}

    def test_url_filter_is_escaped(self):
        sql = build_session_replays_query(
            SessionReplaysQueryInput(page_url_contains="/o'brien", min_active_milliseconds=5000)
        )["source"]["query"]

        assert "r.active_milliseconds >= 5000" in sql
        assert "e.event = '$pageview'" in sql
        assert "LIKE lower('%/o''brien%')" in sql

    def test_url_filter_backslash_stays_inside_literal(self):
        sql = build_session_replays_query(
            SessionReplaysQueryInput(page_url_contains="x\\') OR 1=1 --")
        )["source"]["query"]

        assert "LIKE lower('%x\\\\'') OR 1=1 --%')" in sql

    def test_blank_url_ignored(self):
        sql = build_session_replays_query(SessionReplaysQueryInput(page_url_contains="   "))["source"]["query"]

        assert "LIKE" not in sql

    def test_filters(self):
        query = build_session_replays_query(
            SessionReplaysQueryInput(date_from="-7d", filter_test_accounts=True, limit=5)
        )

        assert query["source"]["filters"] == {
            "dateRange": {"date_from": "-7d"},
            "filterTestAccounts": True,
        }
        assert "LIMIT 5" in query["source"]["query"]

    def test_limit_bounds(self):
        with pytest.raises(ValidationError):
            SessionReplaysQueryInput(limit=5000)

    async def test_tool_runs_query(self, posthog, context):
        posthog.add("POST", QUERY, {"results": [["session-1", 1200]]})

        result = json.loads(await query_session_replays(context, SessionReplaysQueryInput()))

        assert result == [["session-1", 1200]]
        assert sent_query(posthog)["source"]["kind"] == "HogQLQuery"


class TestDocsSearch:
    """Tests for docs-search."""

    async def test_search_inkeep(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": "Use posthog.capture"}}]})

        result = await search_inkeep("ink-key", "how to capture", transport=httpx.MockTransport(handler))

        assert result == "Use posthog.capture"
        assert seen[0].headers["Authorization"] == "Bearer ink-key"
        assert json.loads(seen[0].content)["model"] == docs.INKEEP_MODEL

    async def test_search_inkeep_no_choices(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))

        assert await search_inkeep("k", "q", transport=transport) == "No documentation found for this query."

    async def test_not_configured(self, context):
        with pytest.raises(ToolExecutionError, match="not configured"):
            await search_docs(context, DocsSearchInput(query="flags"))

    async def test_handler_uses_inkeep(self, context, monkeypatch):
        context.config.posthog.inkeep_api_key = "ink-key"
        calls = []

        async def fake_search(api_key, query, transport=None, timeout=30.0):
            calls.append((api_key, query))
            return "docs answer"

        monkeypatch.setattr(docs, "search_inkeep", fake_search)

        assert await search_docs(context, DocsSearchInput(query="flags")) == "docs answer"
        assert calls == [("ink-key", "flags")]

    async def test_upstream_error(self, context, monkeypatch):
        context.config.posthog.inkeep_api_key = "ink-key"

        async def failing_search(api_key, query, transport=None, timeout=30.0):
            request = httpx.Request("POST", docs.INKEEP_URL)
            raise httpx.HTTPStatusError("bad", request=request, response=httpx.Response(502, request=request))

        monkeypatch.setattr(docs, "search_inkeep", failing_search)

        with pytest.raises(ToolExecutionError, match="Inkeep returned 502") as exc:
            await search_docs(context, DocsSearchInput(query="flags"))

        assert exc.value.status == 502
