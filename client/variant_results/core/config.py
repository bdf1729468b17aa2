"""
Configuration for the variant results client.
Centralizes the endpoint, timeouts and tunables for streaming, caching and expansion.
"""

import os
from typing import Optional

from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, Field

# Load .env file (walks up directories to find it)
load_dotenv(find_dotenv())

DEFAULT_API_URL = "https://api.helixinsight.bio"


class VariantsResultsConfig(BaseModel):
    """Main configuration for the variant results subsystem."""

    # Backend
    api_base_url: str = Field(
        default_factory=lambda: os.environ.get("HELIX_API_URL", DEFAULT_API_URL),
        description="Base URL of the variants API (no trailing slash)"
    )

    request_timeout: float = Field(
        default_factory=lambda: float(os.environ.get("HELIX_REQUEST_TIMEOUT", "30.0")),
        gt=0.0,
        description="Per-request timeout in seconds for the shared HTTP client"
    )

    # Session cache
    max_cached_sessions: int = Field(
        default=3,
        ge=1,
        description="Number of inactive sessions kept in memory (LRU)"
    )

    # Streaming
    progress_batch_size: int = Field(
        default=500,
        ge=1,
        description="Report progress every N gene records"
    )

    incremental_commit_threshold: int = Field(
        default=5000,
        ge=0,
        description="Payloads declaring more genes than this are committed in batches; "
                    "smaller ones are committed once on completion"
    )

    # On-demand expansion
    gene_fetch_max_tries: int = Field(
        default=2,
        ge=1,
        description="Attempts for a per-gene variant fetch (transient errors only)"
    )

    # Logging
    log_level: str = Field(
        default_factory=lambda: os.environ.get("HELIX_LOG_LEVEL", "INFO"),
        description="Level for the package logger"
    )


# Global configuration instance
_config: VariantsResultsConfig = VariantsResultsConfig()


def get_config() -> VariantsResultsConfig:
    """Get the global configuration instance."""
    return _config


def reset_config(config: Optional[VariantsResultsConfig] = None) -> VariantsResultsConfig:
    """Replace the global configuration (defaults when omitted)."""
    global _config
    _config = config or VariantsResultsConfig()
    return _config
