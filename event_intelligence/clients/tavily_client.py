"""Factory for the Tavily search client.

The returned handle is the retrieval capability of the pipeline. The entry
point hands it to :class:`~event_intelligence.services.extraction.FactExtractor`
and to nothing else.
"""

from __future__ import annotations

from tavily import AsyncTavilyClient

from ..config import PipelineConfig


def create_tavily_client(config: PipelineConfig) -> AsyncTavilyClient | None:
    """Return an :class:`tavily.AsyncTavilyClient`, or ``None`` without a key."""
    if not config.tavily_api_key:
        return None
    return AsyncTavilyClient(api_key=config.tavily_api_key)

__all__ = ["create_tavily_client"]
