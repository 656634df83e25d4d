"""
Async HTTP client for the PostHog REST API.

Every call returns an ``ApiResult`` (``Success`` or ``Failure``). Transport
errors, non-2xx responses and payloads that fail validation are all reported
as ``Failure``; nothing raises across this boundary, so callers decide what a
failed call means for them.

Example:
    async with ApiClient(api_token="phx_...", base_url="https://us.posthog.com") as api:
        result = await api.users.me()
        if result.success:
            print(result.data.distinct_id)
"""
from __future__ import annotations

import json
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .observability import get_logger
from .resources import (
    ApiKeysResource,
    DashboardsResource,
    ExperimentsResource,
    FeatureFlagsResource,
    InsightsResource,
    OrganizationsResource,
    ProjectsResource,
    QueryResource,
    UsersResource,
)
from .result import ApiResult, Failure, Success

logger = get_logger("posthog-mcp.client")

M = TypeVar("M", bound=BaseModel)

DEFAULT_TIMEOUT = 30.0


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        for field in ("detail", "error", "message"):
            if payload.get(field):
                return str(payload[field])
    return json.dumps(payload)


class ApiClient:
    """PostHog API client bound to one credential and one base URL."""

    def __init__(
        self,
        api_token: str,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

        self.users = UsersResource(self)
        self.api_keys = ApiKeysResource(self)
        self.organizations = OrganizationsResource(self)
        self.projects = ProjectsResource(self)

    def feature_flags(self, project_id: str) -> FeatureFlagsResource:
        return FeatureFlagsResource(self, project_id)

    def insights(self, project_id: str) -> InsightsResource:
        return InsightsResource(self, project_id)

    def dashboards(self, project_id: str) -> DashboardsResource:
        return DashboardsResource(self, project_id)

    def experiments(self, project_id: str) -> ExperimentsResource:
        return ExperimentsResource(self, project_id)

    def query(self, project_id: str) -> QueryResource:
        return QueryResource(self, project_id)

    def get_project_base_url(self, project_id: str) -> str:
        """UI base URL for a project, used to build links in tool output."""
        return f"{self.base_url}/project/{project_id}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: Any = None,
        model: type[M] | None = None,
    ) -> ApiResult[Any]:
        """Send a request and wrap the outcome.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            params: Query string parameters (None values are dropped)
            body: JSON body
            model: Optional pydantic model to validate the payload against
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = await self._http.request(method, path, params=params, json=body)
        except httpx.HTTPError as e:
            logger.warning("Request failed", method=method, path=path, error=str(e))
            return Failure(message=f"Request error: {e}")

        if response.is_error:
            detail = _error_detail(response)
            logger.warning(
                "Request returned error status",
                method=method,
                path=path,
                status=response.status_code,
            )
            return Failure(
                message=f"Request failed with status {response.status_code}: {detail}",
                status=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return Success(None)

        try:
            payload = response.json()
        except ValueError:
            return Failure(
                message="Response was not valid JSON",
                status=response.status_code,
            )

        if model is None:
            return Success(payload)

        try:
            return Success(model.model_validate(payload))
        except ValidationError as e:
            return Failure(
                message=f"Unexpected response shape: {e.error_count()} validation error(s)",
                status=response.status_code,
                details=e.errors(include_url=False),
            )

    async def stream_events(self, method: str, path: str, *, body: Any = None) -> ApiResult[list[Any]]:
        """Send a request whose response is a server-sent event stream.

        Returns the decoded JSON payload of every ``data:`` line.
        """
        events: list[Any] = []
        try:
            async with self._http.stream(
                method,
                path,
                json=body,
                headers={"Accept": "text/event-stream"},
            ) as response:
                if response.is_error:
                    await response.aread()
                    return Failure(
                        message=(
                            f"Request failed with status {response.status_code}: "
                            f"{_error_detail(response)}"
                        ),
                        status=response.status_code,
                    )
                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if not data:
                        continue
                    try:
                        events.append(json.loads(data))
                    except ValueError:
                        logger.debug("Skipping non-JSON event", path=path)
        except httpx.HTTPError as e:
            logger.warning("Stream failed", method=method, path=path, error=str(e))
            return Failure(message=f"Request error: {e}")

        return Success(events)

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
