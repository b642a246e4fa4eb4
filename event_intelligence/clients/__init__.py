"""Convenience re-exports for the SDK client factories.

The Tavily factory is not re-exported; import it from
``clients.tavily_client`` at the single wiring point that needs it.
"""

from .openai_client import create_openai  # noqa: F401
from .mongodb_client import create_mongo_client  # noqa: F401

__all__ = [
    "create_openai",
    "create_mongo_client",
]
