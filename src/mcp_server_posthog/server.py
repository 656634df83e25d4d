"""
PostHog MCP Server - Main Entry Point

FastMCP server implementation with:
- Lifespan management for the state store and per-credential contexts
- Feature-filtered tool registration
- stdio and streamable HTTP transports

Environment Variables:
- POSTHOG_MCP_NAME: Server name (default: posthog-mcp)
- POSTHOG_MCP_TRANSPORT: Transport mode (stdio, streamable_http)
- POSTHOG_MCP_PORT: HTTP port if using streamable_http
- POSTHOG_MCP_LOG_LEVEL: Logging level
- See config.py for the full list
"""
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastmcp import FastMCP

from mcp_server_posthog.config import AppConfig, TransportType, get_config
from mcp_server_posthog.core import (
    ContextProvider,
    create_state_store,
    get_logger,
    init_observability,
)
from mcp_server_posthog.tools import register_tools

logger = get_logger("posthog-mcp.server")

INSTRUCTIONS = """PostHog MCP Server exposing product analytics through the Model Context Protocol.

Tools act on the active organization and project, resolved automatically from
the API key. Use `projects-get` and `switch-project` to change the active
project, and `organizations-get` and `switch-organization` for organizations.
Use `query-run` to check a query before saving it with `insight-create-from-query`.
"""


def create_server(
    config: AppConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastMCP:
    """Build a FastMCP server for ``config``.

    Args:
        config: Application configuration
        transport: Optional httpx transport for all PostHog calls (tests)
    """
    store = create_state_store(config)
    provider = ContextProvider(config, store, transport=transport)

    @asynccontextmanager
    async def app_lifespan(server: FastMCP) -> AsyncGenerator[dict, None]:
        """
        Initialize resources on startup, cleanup on shutdown.

        Contexts are created lazily on the first tool call of each credential;
        shutdown closes their HTTP clients and the state store.
        """
        init_observability(
            service_name=config.server.name,
            service_version=config.server.version,
            log_level=config.server.log_level,
            json_logs=config.server.log_json,
        )
        logger.info("Starting PostHog MCP Server", version=config.server.version)

        for problem in config.validate_required():
            logger.warning("Configuration problem", detail=problem)

        yield {
            "config": config,
            "provider": provider,
            "state_store": store,
        }

        logger.info("Shutting down PostHog MCP Server")
        await provider.aclose()
        await store.close()

    mcp = FastMCP(
        name=config.server.name,
        instructions=INSTRUCTIONS,
        lifespan=app_lifespan,
    )
    register_tools(mcp, provider, config.server.features)
    return mcp


config = get_config()
mcp = create_server(config)


# =============================================================================
# Main Entrypoint
# =============================================================================

def main() -> None:
    """Entry point supporting multiple transports."""
    if config.server.transport == TransportType.STREAMABLE_HTTP:
        logger.info("Starting HTTP server", port=config.server.port)
        mcp.run(transport="streamable-http", port=config.server.port)
    else:
        logger.info("Starting stdio server")
        mcp.run()


if __name__ == "__main__":
    main()
