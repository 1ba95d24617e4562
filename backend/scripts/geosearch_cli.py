"""Command line access to link parsing and place search.

Usage:
    python -m scripts.geosearch_cli search "Eiffel Tower" [--bbox S W N E]
    python -m scripts.geosearch_cli parse "see [](geo:12.3,45.6) here"

Run from the `backend/` directory. Configuration comes from the same
environment variables as the API (see `settings.py`).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from domain.errors import ConfigurationError
from domain.models import BoundingBox
from services.geo_links import splice_geo_link
from services.geosearch import GeoSearcher
from settings import settings

LOG = logging.getLogger("geosearch_cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Resolve coordinates from text or place names")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search a free-text query")
    search.add_argument("query")
    search.add_argument(
        "--bbox",
        nargs=4,
        type=float,
        metavar=("SOUTH", "WEST", "NORTH", "EAST"),
        help="Bias results towards the center of this area",
    )

    parse = sub.add_parser("parse", help="Find a coordinate in a line of text")
    parse.add_argument("line")
    return parser


async def _run(args: argparse.Namespace, searcher: GeoSearcher) -> int:
    if args.command == "search":
        area = BoundingBox(*args.bbox) if args.bbox else None
        results = await searcher.search(args.query, area)
        if not results:
            print("No results")
            return 1
        for r in results:
            print(f"{r.coordinate.latitude},{r.coordinate.longitude}\t{r.kind.value}\t{r.label}")
        return 0

    result = await searcher.parse_link(args.line)
    if result is None:
        print("No location found")
        return 1
    new_line, _ = splice_geo_link(args.line, result)
    print(f"{result.rule_name}: {result.coordinate.latitude},{result.coordinate.longitude}")
    print(new_line)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug or settings.DEBUG else logging.WARNING)
    try:
        searcher = GeoSearcher(settings.search_config())
    except ConfigurationError as exc:
        LOG.error("Invalid configuration: %s", exc)
        return 2
    return asyncio.run(_run(args, searcher))


if __name__ == "__main__":
    sys.exit(main())
