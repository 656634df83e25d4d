"""
PostHog MCP Server Configuration

Handles environment variables and server settings.
All sensitive values are sourced from environment variables.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


class TransportType(str, Enum):
    """MCP transport types."""
    STDIO = "stdio"
    STREAMABLE_HTTP = "streamable_http"


class StateBackend(str, Enum):
    """Where per-scope state is kept."""
    MEMORY = "memory"
    SQLITE = "sqlite"


class ServerConfig(BaseModel):
    """MCP Server configuration."""
    name: str = Field(default="posthog-mcp", description="Server name")
    version: str = Field(default="1.0.0", description="Server version")
    transport: TransportType = Field(
        default=TransportType.STDIO,
        description="Transport: stdio or streamable_http"
    )
    port: int = Field(default=8000, description="HTTP port if using streamable_http")
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Render logs as JSON")
    features: list[str] | None = Field(
        default=None,
        description="Enabled tool features; None enables all"
    )
    max_contexts: int = Field(
        default=256,
        description="Credential contexts kept open at once; least recently used are closed",
        ge=1
    )

    @field_validator('features', mode='before')
    @classmethod
    def split_features(cls, v: str | list[str] | None) -> list[str] | None:
        if v is None:
            return None
        if isinstance(v, str):
            v = v.split(",")
        features = [f.strip() for f in v if f and f.strip()]
        return features or None


class PostHogConfig(BaseModel):
    """PostHog API configuration."""
    personal_api_key: str | None = Field(default=None, description="Personal API key (phx_...)")
    base_url: str | None = Field(
        default=None,
        description="Fixed API base URL; disables region detection"
    )
    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    inkeep_api_key: str | None = Field(default=None, description="Enables docs-search")

    @field_validator('base_url', mode='before')
    @classmethod
    def strip_base_url(cls, v: str | None) -> str | None:
        if not v:
            return None
        return v.rstrip("/")


class StateConfig(BaseModel):
    """Scoped state storage configuration."""
    backend: StateBackend = Field(default=StateBackend.MEMORY, description="memory or sqlite")
    path: Path = Field(
        default=Path("~/.posthog-mcp/state.db").expanduser(),
        description="SQLite database file for the sqlite backend"
    )

    @field_validator('path', mode='before')
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser()


@dataclass
class AppConfig:
    """Application configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    posthog: PostHogConfig = field(default_factory=PostHogConfig)
    state: StateConfig = field(default_factory=StateConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Environment variables referenced:
        - POSTHOG_MCP_NAME
        - POSTHOG_MCP_TRANSPORT
        - POSTHOG_MCP_PORT
        - POSTHOG_MCP_LOG_LEVEL
        - POSTHOG_MCP_LOG_JSON
        - POSTHOG_MCP_FEATURES
        - POSTHOG_MCP_MAX_CONTEXTS
        - POSTHOG_PERSONAL_API_KEY
        - POSTHOG_BASE_URL
        - POSTHOG_REQUEST_TIMEOUT
        - INKEEP_API_KEY
        - POSTHOG_MCP_STATE_BACKEND
        - POSTHOG_MCP_STATE_PATH
        """
        load_dotenv()

        return cls(
            server=ServerConfig(
                name=os.getenv("POSTHOG_MCP_NAME", "posthog-mcp"),
                transport=TransportType(os.getenv("POSTHOG_MCP_TRANSPORT", "stdio")),
                port=int(os.getenv("POSTHOG_MCP_PORT", "8000")),
                log_level=os.getenv("POSTHOG_MCP_LOG_LEVEL", "INFO"),
                log_json=os.getenv("POSTHOG_MCP_LOG_JSON", "false").lower() == "true",
                features=os.getenv("POSTHOG_MCP_FEATURES"),
                max_contexts=int(os.getenv("POSTHOG_MCP_MAX_CONTEXTS", "256")),
            ),
            posthog=PostHogConfig(
                personal_api_key=os.getenv("POSTHOG_PERSONAL_API_KEY"),
                base_url=os.getenv("POSTHOG_BASE_URL"),
                request_timeout=float(os.getenv("POSTHOG_REQUEST_TIMEOUT", "30")),
                inkeep_api_key=os.getenv("INKEEP_API_KEY"),
            ),
            state=StateConfig(
                backend=StateBackend(os.getenv("POSTHOG_MCP_STATE_BACKEND", "memory")),
                path=os.getenv("POSTHOG_MCP_STATE_PATH", "~/.posthog-mcp/state.db"),
            ),
        )

    def validate_required(self) -> list[str]:
        """Validate required configuration and return list of problems."""
        missing = []

        # stdio has no request headers, so the key must come from the environment
        if self.server.transport == TransportType.STDIO and not self.posthog.personal_api_key:
            missing.append("POSTHOG_PERSONAL_API_KEY is required for the stdio transport")

        key = self.posthog.personal_api_key
        if key and not key.startswith("phx_"):
            missing.append("POSTHOG_PERSONAL_API_KEY must start with 'phx_'")

        return missing


# Global config instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
