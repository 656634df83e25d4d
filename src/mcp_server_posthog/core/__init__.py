"""
Core infrastructure modules for PostHog MCP Server.

This package contains:
- cache: Scoped state cache and its backing stores
- state: Lazy resolution of organization, project and identity
- region: Cloud region detection
- client: Async PostHog REST client returning tagged results
- session: Credential resolution and per-scope contexts
- errors: Structured error handling
- observability: Structured logging
"""

from .cache import (
    STATE_KEYS,
    MemoryStateStore,
    ScopedCache,
    SqliteStateStore,
    StateStore,
    create_state_store,
)
from .client import ApiClient
from .context import Context
from .errors import (
    AuthenticationError,
    ErrorCategory,
    PostHogError,
    StateResolutionError,
    ToolExecutionError,
    ToolPermissionError,
    format_error_response,
    handle_tool_error,
)
from .observability import get_logger, init_observability
from .region import REGION_BASE_URLS, RegionResolver
from .result import ApiResult, Failure, Success
from .session import ContextProvider, hash_token
from .state import StateManager

__all__ = [
    # Cache
    "STATE_KEYS",
    "StateStore",
    "MemoryStateStore",
    "SqliteStateStore",
    "ScopedCache",
    "create_state_store",
    # State
    "StateManager",
    "RegionResolver",
    "REGION_BASE_URLS",
    # Client
    "ApiClient",
    "ApiResult",
    "Success",
    "Failure",
    # Session
    "Context",
    "ContextProvider",
    "hash_token",
    # Errors
    "ErrorCategory",
    "PostHogError",
    "StateResolutionError",
    "ToolExecutionError",
    "AuthenticationError",
    "ToolPermissionError",
    "handle_tool_error",
    "format_error_response",
    # Observability
    "get_logger",
    "init_observability",
]
