"""Top-level package for the event-intelligence project.

This package exposes the public run() coroutine so callers can do
`python -m event_intelligence "query"` or
`from event_intelligence import run; asyncio.run(run("query"))`.
"""

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version("event-intelligence")
except _metadata.PackageNotFoundError:  # pragma: no cover - running from source
    __version__ = "0.0.0"

from .workflows.intelligence_pipeline import run  # convenience re-export

__all__ = ["run", "__version__"]
