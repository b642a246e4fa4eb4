"""Factory for the async OpenAI SDK client."""

from __future__ import annotations

from openai import AsyncOpenAI

from ..config import PipelineConfig


def create_openai(config: PipelineConfig) -> AsyncOpenAI | None:
    """Return an :class:`openai.AsyncOpenAI` client, or ``None`` without a key."""
    if not config.openai_api_key:
        return None
    return AsyncOpenAI(api_key=config.openai_api_key, timeout=config.inference_timeout)

__all__ = ["create_openai"]
