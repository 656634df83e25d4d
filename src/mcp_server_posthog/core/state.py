"""
Lazy resolution of the caller's active organization, project and identity.

Each getter returns the cached value when present. On a miss it asks the
PostHog API, stores the answer in the scoped cache and returns it. A failed
lookup raises ``StateResolutionError`` and stores nothing, so the next call
starts over.
"""
from __future__ import annotations

from .cache import ScopedCache
from .client import ApiClient
from .errors import StateResolutionError
from .observability import get_logger
from .resources import ApiKeyInfo

logger = get_logger("posthog-mcp.state")


class StateManager:
    """Resolves and memoizes per-scope state.

    Only absence (``None``) triggers a lookup; an explicitly stored empty
    string is returned as is. Values written by ``switch-project`` or
    ``switch-organization`` win over anything the API would report.
    """

    def __init__(self, cache: ScopedCache, api: ApiClient):
        self._cache = cache
        self._api = api

    async def get_distinct_id(self) -> str:
        distinct_id = await self._cache.get("distinctId")
        if distinct_id is not None:
            return distinct_id

        result = await self._api.users.me()
        if not result.success:
            raise StateResolutionError(f"Failed to get user: {result.message}")

        distinct_id = result.data.distinct_id
        await self._cache.set("distinctId", distinct_id)
        return distinct_id

    async def get_org_id(self) -> str:
        org_id = await self._cache.get("orgId")
        if org_id is not None:
            return org_id

        orgs = await self._api.organizations.list()
        if not orgs.success:
            raise StateResolutionError(f"Failed to get organizations: {orgs.message}")

        if len(orgs.data) == 1:
            org_id = str(orgs.data[0].id)
            logger.debug("Resolved single organization", scope=self._cache.scope)
        else:
            current = await self._api.organizations.get("@current")
            if not current.success:
                raise StateResolutionError(
                    f"Failed to get current organization: {current.message}"
                )
            org_id = str(current.data.id)
            logger.debug(
                "Resolved current organization",
                scope=self._cache.scope,
                candidates=len(orgs.data),
            )

        await self._cache.set("orgId", org_id)
        return org_id

    async def get_project_id(self) -> str:
        project_id = await self._cache.get("projectId")
        if project_id is not None:
            return project_id

        org_id = await self.get_org_id()
        projects = await self._api.organizations.projects(org_id).list()
        if not projects.success:
            raise StateResolutionError(f"Failed to get projects: {projects.message}")

        if len(projects.data) == 1:
            project_id = str(projects.data[0].id)
            logger.debug("Resolved single project", scope=self._cache.scope)
        else:
            current = await self._api.projects.get("@current")
            if not current.success:
                raise StateResolutionError(f"Failed to get current project: {current.message}")
            project_id = str(current.data.id)
            logger.debug(
                "Resolved current project",
                scope=self._cache.scope,
                candidates=len(projects.data),
            )

        await self._cache.set("projectId", project_id)
        return project_id

    async def get_api_key(self) -> ApiKeyInfo:
        """Scopes granted to the credential, used to filter the tool list."""
        cached = await self._cache.get("apiKey")
        if cached is not None:
            return ApiKeyInfo.model_validate(cached)

        result = await self._api.api_keys.current()
        if not result.success:
            raise StateResolutionError(f"Failed to get API key: {result.message}")

        await self._cache.set("apiKey", {"scopes": list(result.data.scopes)})
        return result.data
