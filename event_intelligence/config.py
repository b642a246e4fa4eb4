"""Centralised configuration for event_intelligence.

Environment variables are loaded once and grouped by service. The process
entry point turns them into a :class:`PipelineConfig` which is passed to the
client factories; nothing builds a client at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Load environment variables from `.env` (if present)
# ---------------------------------------------------------------------------
load_dotenv()

# ---------------------------------------------------------------------------
# Core credentials (from environment)
# ---------------------------------------------------------------------------
OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
TAVILY_API_KEY: str | None = os.getenv("TAVILY_API_KEY")
MONGODB_URI: str | None = os.getenv("MONGODB_URI")

# ---------------------------------------------------------------------------
# Service settings
# ---------------------------------------------------------------------------
MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "intelligence")
OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
INFERENCE_TIMEOUT_SECONDS: float = float(os.getenv("INFERENCE_TIMEOUT_SECONDS", "60"))
# advisory spacing between outbound inference calls
INFERENCE_MIN_INTERVAL_SECONDS: float = float(os.getenv("INFERENCE_MIN_INTERVAL_SECONDS", "0.1"))

# ---------------------------------------------------------------------------
# Feature store
# ---------------------------------------------------------------------------
FEATURE_SET_VERSION: int = 1


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Explicit configuration handed to every client factory."""

    openai_api_key: str | None = None
    tavily_api_key: str | None = None
    mongodb_uri: str | None = None
    mongodb_database: str = MONGODB_DATABASE
    openai_model: str = OPENAI_MODEL
    inference_timeout: float = INFERENCE_TIMEOUT_SECONDS
    min_call_interval: float = INFERENCE_MIN_INTERVAL_SECONDS

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        return cls(
            openai_api_key=OPENAI_API_KEY,
            tavily_api_key=TAVILY_API_KEY,
            mongodb_uri=MONGODB_URI,
        )


# ---------------------------------------------------------------------------
# Re-exported names
# ---------------------------------------------------------------------------
__all__ = [
    # credentials
    "OPENAI_API_KEY",
    "TAVILY_API_KEY",
    "MONGODB_URI",
    # service settings
    "MONGODB_DATABASE",
    "OPENAI_MODEL",
    "INFERENCE_TIMEOUT_SECONDS",
    "INFERENCE_MIN_INTERVAL_SECONDS",
    # feature store
    "FEATURE_SET_VERSION",
    "PipelineConfig",
]
