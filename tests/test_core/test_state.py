"""
Tests for StateManager resolution and memoization.
"""
from __future__ import annotations

import asyncio

import pytest

from mcp_server_posthog.core.errors import StateResolutionError

ORGS_PATH = "/api/organizations/"
CURRENT_ORG_PATH = "/api/organizations/@current/"
CURRENT_PROJECT_PATH = "/api/projects/@current/"


def projects_path(org_id: str) -> str:
    return f"/api/organizations/{org_id}/projects/"


class TestDistinctId:
    """Tests for get_distinct_id."""

    async def test_resolves_and_caches(self, posthog, state_manager, cache):
        posthog.add("GET", "/api/users/@me/", {"distinct_id": "user-1", "email": "a@b.c"})

        assert await state_manager.get_distinct_id() == "user-1"
        assert await cache.get("distinctId") == "user-1"

    async def test_idempotent(self, posthog, state_manager):
        """Second call is served from the cache without a remote call."""
        posthog.add("GET", "/api/users/@me/", {"distinct_id": "user-1"})

        first = await state_manager.get_distinct_id()
        second = await state_manager.get_distinct_id()

        assert first == second == "user-1"
        assert len(posthog.calls("GET", "/api/users/@me/")) == 1

    async def test_failure_raises(self, posthog, state_manager, cache):
        posthog.add("GET", "/api/users/@me/", {"detail": "Invalid token"}, status=401)

        with pytest.raises(StateResolutionError, match="^Failed to get user: "):
            await state_manager.get_distinct_id()
        assert await cache.get("distinctId") is None

    async def test_failure_not_remembered(self, posthog, state_manager, cache):
        """A failed lookup leaves nothing behind, so the next call can succeed."""
        posthog.add("GET", "/api/users/@me/", {"detail": "Invalid token"}, status=401)
        with pytest.raises(StateResolutionError):
            await state_manager.get_distinct_id()

        posthog.add("GET", "/api/users/@me/", {"distinct_id": "user-1"})

        assert await state_manager.get_distinct_id() == "user-1"
        assert await cache.get("distinctId") == "user-1"

    async def test_empty_string_is_a_hit(self, posthog, state_manager, cache):
        """Only absence triggers resolution."""
        await cache.set("distinctId", "")

        assert await state_manager.get_distinct_id() == ""
        assert posthog.requests == []


class TestOrgId:
    """Tests for get_org_id."""

    async def test_single_org_shortcut(self, posthog, state_manager, cache):
        posthog.add("GET", ORGS_PATH, {"results": [{"id": "org-1", "name": "Only"}]})

        assert await state_manager.get_org_id() == "org-1"
        assert await cache.get("orgId") == "org-1"
        assert posthog.calls("GET", CURRENT_ORG_PATH) == []

    async def test_concurrent_first_resolution(self, posthog, state_manager, cache):
        """Two callers racing on an empty scope agree on one organization."""
        posthog.add("GET", ORGS_PATH, {"results": [{"id": "org-1", "name": "Only"}]})

        first, second = await asyncio.gather(state_manager.get_org_id(), state_manager.get_org_id())

        assert first == second == "org-1"
        assert await cache.get("orgId") == "org-1"

    async def test_multi_org_uses_current(self, posthog, state_manager, cache):
        posthog.add("GET", ORGS_PATH, {"results": [{"id": "org-1"}, {"id": "org-2"}]})
        posthog.add("GET", CURRENT_ORG_PATH, {"id": "org-2", "name": "Current"})

        assert await state_manager.get_org_id() == "org-2"
        assert await cache.get("orgId") == "org-2"

    async def test_zero_orgs_uses_current(self, posthog, state_manager):
        posthog.add("GET", ORGS_PATH, {"results": []})
        posthog.add("GET", CURRENT_ORG_PATH, {"id": "org-9"})

        assert await state_manager.get_org_id() == "org-9"

    async def test_list_failure(self, posthog, state_manager, cache):
        posthog.add("GET", ORGS_PATH, {"detail": "boom"}, status=500)

        with pytest.raises(StateResolutionError, match="^Failed to get organizations: "):
            await state_manager.get_org_id()
        assert await cache.get("orgId") is None

    async def test_current_failure(self, posthog, state_manager, cache):
        posthog.add("GET", ORGS_PATH, {"results": [{"id": "org-1"}, {"id": "org-2"}]})
        posthog.add("GET", CURRENT_ORG_PATH, {"detail": "nope"}, status=403)

        with pytest.raises(StateResolutionError, match="^Failed to get current organization: "):
            await state_manager.get_org_id()
        assert await cache.get("orgId") is None

    async def test_explicit_override_wins(self, posthog, state_manager, cache):
        """A switched organization is returned without asking the API."""
        await cache.set("orgId", "chosen-org")

        assert await state_manager.get_org_id() == "chosen-org"
        assert posthog.requests == []


class TestProjectId:
    """Tests for get_project_id."""

    async def test_single_project_shortcut(self, posthog, state_manager, cache):
        posthog.add("GET", ORGS_PATH, {"results": [{"id": "org-1"}]})
        posthog.add("GET", projects_path("org-1"), {"results": [{"id": 77, "name": "Web"}]})

        assert await state_manager.get_project_id() == "77"
        assert await cache.get("projectId") == "77"
        assert await cache.get("orgId") == "org-1"

    async def test_ids_stored_as_strings(self, posthog, state_manager, cache):
        await cache.set("orgId", "org-1")
        posthog.add("GET", projects_path("org-1"), {"results": [{"id": 1}, {"id": 2}]})
        posthog.add("GET", CURRENT_PROJECT_PATH, {"id": 2})

        project_id = await state_manager.get_project_id()

        assert project_id == "2"
        assert isinstance(await cache.get("projectId"), str)

    async def test_multi_project_uses_current(self, posthog, state_manager):
        posthog.add("GET", ORGS_PATH, {"results": [{"id": "org-1"}]})
        posthog.add("GET", projects_path("org-1"), {"results": [{"id": 1}, {"id": 2}]})
        posthog.add("GET", CURRENT_PROJECT_PATH, {"id": 2})

        assert await state_manager.get_project_id() == "2"

    async def test_org_failure_propagates(self, posthog, state_manager, cache):
        posthog.add("GET", ORGS_PATH, {"detail": "down"}, status=503)

        with pytest.raises(StateResolutionError, match="^Failed to get organizations: "):
            await state_manager.get_project_id()
        assert await cache.get("projectId") is None

    async def test_projects_failure(self, posthog, state_manager):
        posthog.add("GET", ORGS_PATH, {"results": [{"id": "org-1"}]})
        posthog.add("GET", projects_path("org-1"), {"detail": "down"}, status=500)

        with pytest.raises(StateResolutionError, match="^Failed to get projects: "):
            await state_manager.get_project_id()

    async def test_current_project_failure(self, posthog, state_manager):
        posthog.add("GET", ORGS_PATH, {"results": [{"id": "org-1"}]})
        posthog.add("GET", projects_path("org-1"), {"results": [{"id": 1}, {"id": 2}]})
        posthog.add("GET", CURRENT_PROJECT_PATH, {"detail": "gone"}, status=404)

        with pytest.raises(StateResolutionError, match="^Failed to get current project: "):
            await state_manager.get_project_id()

    async def test_failure_does_not_poison(self, posthog, state_manager):
        """After a failed resolution the next call starts over and can succeed."""
        posthog.add("GET", ORGS_PATH, {"detail": "flaky"}, status=500)
        with pytest.raises(StateResolutionError):
            await state_manager.get_project_id()

        posthog.add("GET", ORGS_PATH, {"results": [{"id": "org-1"}]})
        posthog.add("GET", projects_path("org-1"), {"results": [{"id": 5}]})

        assert await state_manager.get_project_id() == "5"

    async def test_explicit_override_wins(self, posthog, state_manager, cache):
        """switch-project writes the cache; the getter returns that value."""
        await cache.set("projectId", "999")

        assert await state_manager.get_project_id() == "999"
        assert posthog.requests == []

    async def test_idempotent(self, posthog, state_manager):
        posthog.add("GET", ORGS_PATH, {"results": [{"id": "org-1"}]})
        posthog.add("GET", projects_path("org-1"), {"results": [{"id": 5}]})

        await state_manager.get_project_id()
        await state_manager.get_project_id()

        assert len(posthog.calls("GET", ORGS_PATH)) == 1
        assert len(posthog.calls("GET", projects_path("org-1"))) == 1


class TestApiKey:
    """Tests for get_api_key."""

    async def test_resolves_and_caches(self, posthog, state_manager, cache):
        posthog.add("GET", "/api/personal_api_keys/@current", {"scopes": ["insight:read"]})

        info = await state_manager.get_api_key()
        again = await state_manager.get_api_key()

        assert info.scopes == ["insight:read"]
        assert again.scopes == ["insight:read"]
        assert await cache.get("apiKey") == {"scopes": ["insight:read"]}
        assert len(posthog.calls("GET", "/api/personal_api_keys/@current")) == 1

    async def test_failure(self, posthog, state_manager):
        posthog.add("GET", "/api/personal_api_keys/@current", {"detail": "bad"}, status=401)

        with pytest.raises(StateResolutionError, match="^Failed to get API key: "):
            await state_manager.get_api_key()
