"""
Cloud region detection.

PostHog Cloud runs separate US and EU deployments and a personal API key is
only valid in one of them. Detection probes every region with the same key at
once and keeps the first one, in priority order, that accepts it.
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable

from .cache import ScopedCache
from .client import ApiClient
from .observability import get_logger

logger = get_logger("posthog-mcp.region")

# Priority order: the first successful probe in this order wins
REGION_BASE_URLS: dict[str, str] = {
    "us": "https://us.posthog.com",
    "eu": "https://eu.posthog.com",
}
DEFAULT_REGION = "us"

ClientFactory = Callable[[str], ApiClient]


class RegionResolver:
    """Determines which regional deployment holds the caller's account.

    Args:
        cache: Scoped cache of the caller
        client_factory: Builds an ``ApiClient`` for a given base URL using the
            caller's credential
    """

    def __init__(self, cache: ScopedCache, client_factory: ClientFactory):
        self._cache = cache
        self._client_factory = client_factory

    async def _probe(self, region: str) -> bool:
        async with self._client_factory(REGION_BASE_URLS[region]) as api:
            result = await api.users.me()
        return result.success

    async def detect(self) -> str | None:
        """Probe all regions concurrently and store the winner.

        Returns None, storing nothing, when no region accepts the credential.
        """
        regions = list(REGION_BASE_URLS)
        outcomes = await asyncio.gather(*(self._probe(region) for region in regions))

        for region, ok in zip(regions, outcomes):
            if ok:
                await self._cache.set("region", region)
                logger.info("Detected region", region=region, scope=self._cache.scope)
                return region

        logger.warning("Region detection failed", scope=self._cache.scope)
        return None

    async def get_base_url(self, custom_base_url: str | None = None) -> str:
        """Base URL for API calls.

        A custom base URL (self-hosted instance) skips detection entirely.
        Otherwise the cached region is used, detecting it on first use, and
        an undetectable region falls back to the US deployment.
        """
        if custom_base_url:
            return custom_base_url.rstrip("/")

        region = await self._cache.get("region")
        if region is None:
            region = await self.detect()

        return REGION_BASE_URLS.get(region or DEFAULT_REGION, REGION_BASE_URLS[DEFAULT_REGION])
