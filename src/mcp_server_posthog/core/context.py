"""Per-credential execution context handed to every tool handler."""
from __future__ import annotations

from dataclasses import dataclass

from mcp_server_posthog.config import AppConfig

from .cache import ScopedCache
from .client import ApiClient
from .state import StateManager


@dataclass
class Context:
    """Everything a tool handler needs for one authenticated caller."""
    api: ApiClient
    cache: ScopedCache
    state: StateManager
    config: AppConfig

    @property
    def scope(self) -> str:
        return self.cache.scope

    @property
    def inkeep_api_key(self) -> str | None:
        return self.config.posthog.inkeep_api_key
