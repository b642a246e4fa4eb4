"""Factory for the async MongoDB client."""

from __future__ import annotations

from pymongo import AsyncMongoClient

from ..config import PipelineConfig


def create_mongo_client(config: PipelineConfig) -> AsyncMongoClient:
    """Return a :class:`pymongo.AsyncMongoClient` for ``config.mongodb_uri``."""
    if not config.mongodb_uri:
        raise EnvironmentError("MONGODB_URI is not set in environment variables")
    return AsyncMongoClient(config.mongodb_uri)

__all__ = ["create_mongo_client"]
