"""Command-line entry: ``python -m event_intelligence "query"``."""

from __future__ import annotations

import argparse
import asyncio

from .workflows.intelligence_pipeline import run


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="event_intelligence", description=__doc__)
    parser.add_argument("query", help="search query for fact extraction")
    args = parser.parse_args(argv)

    stats = asyncio.run(run(args.query))
    return 0 if stats.signals or stats.events_extracted else 1


if __name__ == "__main__":
    raise SystemExit(main())
