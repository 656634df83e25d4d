"""
Structured logging for the PostHog MCP Server.

Logs always go to stderr: on the stdio transport stdout carries the
JSON-RPC stream and must stay clean. Credential scopes are SHA-256 hashes
of personal API keys; the ``scope`` field is shortened on every log line
and token-like fields are redacted before rendering.

Environment Variables:
- POSTHOG_MCP_LOG_LEVEL: Log level (default: INFO)
- POSTHOG_MCP_LOG_JSON: Render logs as JSON if 'true'
"""
from __future__ import annotations

import logging
import sys
from collections.abc import AsyncGenerator, MutableMapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any

import structlog

SCOPE_PREFIX_LENGTH = 12
REDACTED_FIELDS = frozenset({"api_token", "token", "authorization", "personal_api_key"})

# Chatty per-request loggers from the HTTP stack
_QUIET_LOGGERS = ("httpx", "httpcore")


def mask_scope(scope: str | None) -> str | None:
    """Shorten a scope hash for log output."""
    if scope and len(scope) > SCOPE_PREFIX_LENGTH:
        return f"{scope[:SCOPE_PREFIX_LENGTH]}..."
    return scope


def _protect_credentials(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    if "scope" in event_dict:
        event_dict["scope"] = mask_scope(event_dict["scope"])
    for key in REDACTED_FIELDS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_logs: Render JSON lines instead of the console format
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _protect_credentials,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(levelname)s %(name)s %(message)s", stream=sys.stderr, level=numeric_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str = "posthog-mcp") -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


@dataclass
class ToolCall:
    """One tool invocation: a logger bound to the tool and caller, plus timing."""

    tool: str
    feature: str
    scope: str | None = None
    started: float = field(default_factory=perf_counter)

    def __post_init__(self) -> None:
        self.log = get_logger(f"posthog-mcp.tools.{self.feature}").bind(
            tool=self.tool, scope=self.scope
        )

    @property
    def duration_ms(self) -> float:
        return round((perf_counter() - self.started) * 1000, 2)


@asynccontextmanager
async def observe_tool(
    tool: str,
    feature: str,
    scope: str | None = None,
) -> AsyncGenerator[ToolCall, None]:
    """Log the start, outcome and duration of a tool call.

    Exceptions are logged and re-raised.

    Example:
        async with observe_tool("dashboard-get", "dashboards", context.scope):
            return await handler(context, params)
    """
    call = ToolCall(tool=tool, feature=feature or "core", scope=scope)
    call.log.debug("Tool called")
    try:
        yield call
    except Exception as e:
        call.log.warning(
            "Tool failed",
            duration_ms=call.duration_ms,
            error_type=type(e).__name__,
            error=str(e),
        )
        raise
    call.log.info("Tool completed", duration_ms=call.duration_ms)


def init_observability(
    service_name: str = "posthog-mcp",
    service_version: str = "1.0.0",
    log_level: str = "INFO",
    json_logs: bool = False,
) -> None:
    """Configure logging and announce the service."""
    configure_logging(level=log_level, json_logs=json_logs)
    get_logger().info(
        "Logging configured",
        service=service_name,
        version=service_version,
        log_level=log_level.upper(),
    )
