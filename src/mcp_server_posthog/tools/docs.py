"""
Documentation search through Inkeep.

Only registered when ``INKEEP_API_KEY`` is configured.
"""
from __future__ import annotations

import httpx
from pydantic import Field

from mcp_server_posthog.core.context import Context
from mcp_server_posthog.core.errors import ToolExecutionError
from mcp_server_posthog.core.models import BaseToolInput
from mcp_server_posthog.core.observability import get_logger

from .base import ToolSpec

logger = get_logger("posthog-mcp.tools.docs")

INKEEP_URL = "https://api.inkeep.com/v1/chat/completions"
INKEEP_MODEL = "inkeep-context-gpt-4o"


class DocsSearchInput(BaseToolInput):
    query: str = Field(..., description="What to look up in the PostHog docs", min_length=1)


async def search_inkeep(
    api_key: str,
    query: str,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = 30.0,
) -> str:
    """Ask Inkeep for documentation context on ``query``."""
    async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
        response = await client.post(
            INKEEP_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            json={
                "model": INKEEP_MODEL,
                "messages": [{"role": "user", "content": query}],
            },
        )
        response.raise_for_status()
        payload = response.json()

    choices = payload.get("choices") or []
    if not choices:
        return "No documentation found for this query."
    return choices[0].get("message", {}).get("content") or "No documentation found for this query."


async def search_docs(context: Context, params: DocsSearchInput) -> str:
    if not context.inkeep_api_key:
        raise ToolExecutionError("Documentation search is not configured (INKEEP_API_KEY is unset)")
    try:
        return await search_inkeep(
            context.inkeep_api_key,
            params.query,
            timeout=context.config.posthog.request_timeout,
        )
    except httpx.HTTPStatusError as e:
        raise ToolExecutionError(
            f"Failed to search docs: Inkeep returned {e.response.status_code}",
            status=e.response.status_code,
        ) from e
    except httpx.HTTPError as e:
        logger.warning("Docs search failed", error=str(e))
        raise ToolExecutionError(f"Failed to search docs: {e}") from e


TOOLS = [
    ToolSpec("docs-search", DocsSearchInput, search_docs),
]
