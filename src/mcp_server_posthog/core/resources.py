"""
PostHog REST resources.

Thin groupings of endpoints over ``ApiClient.request``. Identity-related
payloads (user, API key, organization, project) are validated into pydantic
models because the state manager depends on their fields; everything else is
passed through as plain JSON.
"""
from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .result import ApiResult, Failure, Success

if TYPE_CHECKING:
    from .client import ApiClient


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class UserInfo(_ApiModel):
    distinct_id: str
    email: str | None = None


class ApiKeyInfo(_ApiModel):
    scopes: list[str] = Field(default_factory=list)


class Organization(_ApiModel):
    id: str
    name: str | None = None


class Project(_ApiModel):
    id: int | str
    name: str | None = None
    organization: str | None = None


def _unwrap_list(result: ApiResult[Any], model: type[BaseModel] | None = None) -> ApiResult[list[Any]]:
    """Pull ``results`` out of a paginated list response."""
    if not result.success:
        return result
    payload = result.data
    items = payload.get("results", []) if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        return Failure(message="Expected a list response")
    if model is None:
        return Success(items)
    try:
        return Success([model.model_validate(item) for item in items])
    except ValidationError as e:
        return Failure(
            message=f"Unexpected response shape: {e.error_count()} validation error(s)",
            details=e.errors(include_url=False),
        )


class _Resource:
    def __init__(self, client: ApiClient):
        self._client = client


class _ProjectResource(_Resource):
    def __init__(self, client: ApiClient, project_id: str):
        super().__init__(client)
        self.project_id = project_id


class UsersResource(_Resource):
    async def me(self) -> ApiResult[UserInfo]:
        return await self._client.request("GET", "/api/users/@me/", model=UserInfo)


class ApiKeysResource(_Resource):
    async def current(self) -> ApiResult[ApiKeyInfo]:
        return await self._client.request(
            "GET", "/api/personal_api_keys/@current", model=ApiKeyInfo
        )


class OrganizationProjectsResource(_Resource):
    def __init__(self, client: ApiClient, org_id: str):
        super().__init__(client)
        self.org_id = org_id

    async def list(self) -> ApiResult[list[Project]]:
        result = await self._client.request("GET", f"/api/organizations/{self.org_id}/projects/")
        return _unwrap_list(result, Project)


class OrganizationsResource(_Resource):
    async def list(self) -> ApiResult[list[Organization]]:
        result = await self._client.request("GET", "/api/organizations/")
        return _unwrap_list(result, Organization)

    async def get(self, org_id: str) -> ApiResult[Organization]:
        """Fetch one organization; ``"@current"`` resolves the caller's default."""
        return await self._client.request(
            "GET", f"/api/organizations/{org_id}/", model=Organization
        )

    def projects(self, org_id: str) -> OrganizationProjectsResource:
        return OrganizationProjectsResource(self._client, org_id)


class ProjectsResource(_Resource):
    async def get(self, project_id: str) -> ApiResult[Project]:
        return await self._client.request("GET", f"/api/projects/{project_id}/", model=Project)

    async def event_definitions(
        self, project_id: str, search: str | None = None
    ) -> ApiResult[list[dict[str, Any]]]:
        result = await self._client.request(
            "GET",
            f"/api/projects/{project_id}/event_definitions/",
            params={"search": search},
        )
        return _unwrap_list(result)

    async def property_definitions(
        self,
        project_id: str,
        event_names: list[str] | None = None,
        property_type: str = "event",
        exclude_core_properties: bool = True,
        filter_by_event_names: bool = True,
        is_feature_flag: bool = False,
        limit: int = 100,
    ) -> ApiResult[list[dict[str, Any]]]:
        params: dict[str, Any] = {
            "type": property_type,
            "exclude_core_properties": str(exclude_core_properties).lower(),
            "filter_by_event_names": str(filter_by_event_names).lower(),
            "is_feature_flag": str(is_feature_flag).lower(),
            "limit": limit,
        }
        if event_names:
            params["event_names"] = json.dumps(event_names)
        result = await self._client.request(
            "GET", f"/api/projects/{project_id}/property_definitions/", params=params
        )
        return _unwrap_list(result)


class FeatureFlagsResource(_ProjectResource):
    @property
    def _path(self) -> str:
        return f"/api/projects/{self.project_id}/feature_flags/"

    async def list(self) -> ApiResult[list[dict[str, Any]]]:
        return _unwrap_list(await self._client.request("GET", self._path))

    async def get(self, flag_id: int) -> ApiResult[dict[str, Any]]:
        return await self._client.request("GET", f"{self._path}{flag_id}/")

    async def find_by_key(self, key: str) -> ApiResult[dict[str, Any] | None]:
        """Return the flag with ``key``, or ``Success(None)`` when there is none."""
        result = await self.list()
        if not result.success:
            return result
        for flag in result.data:
            if flag.get("key") == key:
                return Success(flag)
        return Success(None)

    async def create(self, data: dict[str, Any]) -> ApiResult[dict[str, Any]]:
        return await self._client.request("POST", self._path, body=data)

    async def update(self, flag_id: int, data: dict[str, Any]) -> ApiResult[dict[str, Any]]:
        return await self._client.request("PATCH", f"{self._path}{flag_id}/", body=data)

    async def delete(self, flag_id: int) -> ApiResult[dict[str, Any]]:
        # PostHog soft-deletes flags
        return await self._client.request(
            "PATCH", f"{self._path}{flag_id}/", body={"deleted": True}
        )


class InsightsResource(_ProjectResource):
    @property
    def _path(self) -> str:
        return f"/api/projects/{self.project_id}/insights/"

    async def list(self, params: dict[str, Any] | None = None) -> ApiResult[list[dict[str, Any]]]:
        return _unwrap_list(await self._client.request("GET", self._path, params=params))

    async def get(self, insight_id: int | str) -> ApiResult[dict[str, Any]]:
        return await self._client.request("GET", f"{self._path}{insight_id}/")

    async def get_by_short_id(self, short_id: str) -> ApiResult[dict[str, Any] | None]:
        result = await self.list({"short_id": short_id})
        if not result.success:
            return result
        return Success(result.data[0] if result.data else None)

    async def create(self, data: dict[str, Any]) -> ApiResult[dict[str, Any]]:
        return await self._client.request("POST", self._path, body={"saved": True, **data})

    async def update(self, insight_id: int, data: dict[str, Any]) -> ApiResult[dict[str, Any]]:
        return await self._client.request("PATCH", f"{self._path}{insight_id}/", body=data)

    async def delete(self, insight_id: int) -> ApiResult[dict[str, Any]]:
        return await self._client.request(
            "PATCH", f"{self._path}{insight_id}/", body={"deleted": True}
        )

    async def query(self, query: dict[str, Any]) -> ApiResult[dict[str, Any]]:
        return await QueryResource(self._client, self.project_id).run(query)

    async def sql_insight(self, question: str) -> ApiResult[list[Any]]:
        """Ask PostHog AI to write and run a HogQL insight for ``question``."""
        return await self._client.stream_events(
            "POST",
            f"/api/environments/{self.project_id}/max_tools/create_and_query_insight/",
            body={"query": question, "insight_type": "sql"},
        )


class DashboardsResource(_ProjectResource):
    @property
    def _path(self) -> str:
        return f"/api/projects/{self.project_id}/dashboards/"

    async def list(self, params: dict[str, Any] | None = None) -> ApiResult[list[dict[str, Any]]]:
        return _unwrap_list(await self._client.request("GET", self._path, params=params))

    async def get(self, dashboard_id: int) -> ApiResult[dict[str, Any]]:
        return await self._client.request("GET", f"{self._path}{dashboard_id}/")

    async def create(self, data: dict[str, Any]) -> ApiResult[dict[str, Any]]:
        return await self._client.request("POST", self._path, body=data)

    async def update(self, dashboard_id: int, data: dict[str, Any]) -> ApiResult[dict[str, Any]]:
        return await self._client.request("PATCH", f"{self._path}{dashboard_id}/", body=data)

    async def delete(self, dashboard_id: int) -> ApiResult[dict[str, Any]]:
        return await self._client.request(
            "PATCH", f"{self._path}{dashboard_id}/", body={"deleted": True}
        )

    async def add_insight(self, dashboard_id: int, insight_id: int) -> ApiResult[dict[str, Any]]:
        """Attach an insight by extending the insight's ``dashboards`` list."""
        insights = InsightsResource(self._client, self.project_id)
        current = await insights.get(insight_id)
        if not current.success:
            return current
        dashboards = list(current.data.get("dashboards") or [])
        if dashboard_id not in dashboards:
            dashboards.append(dashboard_id)
        return await insights.update(insight_id, {"dashboards": dashboards})


class ExperimentsResource(_ProjectResource):
    @property
    def _path(self) -> str:
        return f"/api/projects/{self.project_id}/experiments/"

    async def list(self) -> ApiResult[list[dict[str, Any]]]:
        return _unwrap_list(await self._client.request("GET", self._path))

    async def get(self, experiment_id: int) -> ApiResult[dict[str, Any]]:
        return await self._client.request("GET", f"{self._path}{experiment_id}/")


class QueryResource(_ProjectResource):
    async def run(self, query: dict[str, Any]) -> ApiResult[dict[str, Any]]:
        return await self._client.request(
            "POST",
            f"/api/environments/{self.project_id}/query/",
            body={"query": query},
        )
