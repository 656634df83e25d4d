"""
Credential resolution and per-scope context construction.

On the streamable HTTP transport each request carries its own personal API
key in the ``Authorization: Bearer`` header; on stdio the key comes from
configuration. A credential maps to a scope (SHA-256 of the token) and each
scope gets one ``Context``, built on first use and reused afterwards.

A context whose region could not be detected is kept, but detection runs
again on its next use. At most ``max_contexts`` contexts stay open; the
least recently used one is closed when the limit is exceeded.
"""
from __future__ import annotations

import asyncio
import hashlib
from collections import OrderedDict
from dataclasses import dataclass

import httpx
from fastmcp.server.dependencies import get_http_headers

from mcp_server_posthog.config import AppConfig

from .cache import ScopedCache, StateStore
from .client import ApiClient
from .context import Context
from .errors import AuthenticationError
from .observability import get_logger
from .region import RegionResolver
from .state import StateManager

logger = get_logger("posthog-mcp.session")

TOKEN_PREFIX = "phx_"


def hash_token(token: str) -> str:
    """Derive the state scope for a credential."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def validate_token(token: str | None) -> str:
    if not token:
        raise AuthenticationError(
            "No PostHog personal API key provided. Send 'Authorization: Bearer phx_...' "
            "or set POSTHOG_PERSONAL_API_KEY."
        )
    if not token.startswith(TOKEN_PREFIX):
        raise AuthenticationError(
            f"Invalid PostHog personal API key: expected a key starting with '{TOKEN_PREFIX}'"
        )
    return token


def token_from_headers(headers: dict[str, str]) -> str | None:
    auth = headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[len("bearer "):].strip() or None
    return None


@dataclass
class _Session:
    context: Context
    region_known: bool


class ContextProvider:
    """Builds and caches one ``Context`` per credential scope.

    Args:
        config: Application configuration
        store: Backing store shared by all scopes
        transport: Optional httpx transport, used by tests to fake PostHog
    """

    def __init__(
        self,
        config: AppConfig,
        store: StateStore,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.store = store
        self.max_contexts = config.server.max_contexts
        self._transport = transport
        self._sessions: OrderedDict[str, _Session] = OrderedDict()
        # One lock per scope; detection for one caller never blocks another
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def resolve_token(self) -> str:
        """Credential for the current call: request header first, then config."""
        token = token_from_headers(get_http_headers(include_all=True))
        return validate_token(token or self.config.posthog.personal_api_key)

    def _client(self, token: str, base_url: str) -> ApiClient:
        return ApiClient(
            api_token=token,
            base_url=base_url,
            timeout=self.config.posthog.request_timeout,
            transport=self._transport,
        )

    def _ready(self, scope: str) -> Context | None:
        session = self._sessions.get(scope)
        if session is None or not session.region_known:
            return None
        self._sessions.move_to_end(scope)
        return session.context

    async def get_context(self, token: str | None = None) -> Context:
        token = validate_token(token) if token else self.resolve_token()
        scope = hash_token(token)

        context = self._ready(scope)
        if context is not None:
            return context

        lock = self._locks.setdefault(scope, asyncio.Lock())
        async with lock:
            context = self._ready(scope)
            if context is not None:
                return context

            previous = self._sessions.get(scope)
            cache = previous.context.cache if previous else ScopedCache(scope, self.store)
            custom_base_url = self.config.posthog.base_url
            resolver = RegionResolver(cache, lambda url: self._client(token, url))
            base_url = await resolver.get_base_url(custom_base_url)
            region_known = bool(custom_base_url) or await cache.get("region") is not None

            if previous is not None and previous.context.api.base_url == base_url:
                previous.region_known = region_known
                self._sessions.move_to_end(scope)
                return previous.context

            api = self._client(token, base_url)
            context = Context(
                api=api,
                cache=cache,
                state=StateManager(cache, api),
                config=self.config,
            )
            self._sessions[scope] = _Session(context, region_known)
            self._sessions.move_to_end(scope)
            logger.info(
                "Created context",
                scope=scope,
                base_url=base_url,
                region_known=region_known,
            )

        if previous is not None:
            await previous.context.api.aclose()
        await self._evict()
        return context

    async def _evict(self) -> None:
        while len(self._sessions) > self.max_contexts:
            scope, session = self._sessions.popitem(last=False)
            self._locks.pop(scope, None)
            await session.context.api.aclose()
            logger.debug("Closed least recently used context", scope=scope)

    async def aclose(self) -> None:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        self._locks.clear()
        for session in sessions:
            await session.context.api.aclose()
