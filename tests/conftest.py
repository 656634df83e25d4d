"""
Pytest configuration and shared fixtures for PostHog MCP Server tests.

PostHog itself is faked with ``httpx.MockTransport``: tests register canned
responses per (method, path) and inspect the requests that were sent.
"""
from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from mcp_server_posthog.config import AppConfig, PostHogConfig, reset_config
from mcp_server_posthog.core.cache import MemoryStateStore, ScopedCache
from mcp_server_posthog.core.client import ApiClient
from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.state import StateManager

TEST_TOKEN = "phx_test_token_123"
BASE_URL = "https://us.posthog.com"
PROJECT_ID = "42"
ORG_ID = "0190a8e6-1111-7000-8000-000000000001"


class FakePostHog:
    """Canned-response PostHog API.

    Routes are keyed by (method, path) and optionally restricted to a host.
    Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str | None, str, str], tuple[int, Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        payload: Any = None,
        status: int = 200,
        host: str | None = None,
    ) -> None:
        self.routes[(host, method.upper(), path)] = (status, payload)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.url.host, request.method, request.url.path)
        route = self.routes.get(key) or self.routes.get((None, request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"detail": "Not found."})
        status, payload = route
        if isinstance(payload, str):
            return httpx.Response(status, text=payload)
        return httpx.Response(status, json=payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    def body(self, request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture(autouse=True)
def _reset_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def posthog() -> FakePostHog:
    return FakePostHog()


@pytest.fixture
async def api(posthog: FakePostHog):
    client = ApiClient(api_token=TEST_TOKEN, base_url=BASE_URL, transport=posthog.transport)
    yield client
    await client.aclose()


@pytest.fixture
def store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def cache(store: MemoryStateStore) -> ScopedCache:
    return ScopedCache("scope-a", store)


@pytest.fixture
def state_manager(cache: ScopedCache, api: ApiClient) -> StateManager:
    return StateManager(cache, api)


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(posthog=PostHogConfig(personal_api_key=TEST_TOKEN))


@pytest.fixture
async def context(api: ApiClient, cache: ScopedCache, state_manager: StateManager, app_config: AppConfig) -> Context:
    """Context with the active project and a full-access key already resolved."""
    await cache.set("projectId", PROJECT_ID)
    await cache.set("orgId", ORG_ID)
    await cache.set("apiKey", {"scopes": ["*"]})
    return Context(api=api, cache=cache, state=state_manager, config=app_config)


# Markers
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (require PostHog access)")
    config.addinivalue_line("markers", "slow: Slow tests (>5 seconds)")


# Collection hooks
def pytest_collection_modifyitems(config, items):
    """Modify test collection."""
    # Add markers based on test location
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
