#!/usr/bin/env python3
"""Run one Linkd profile search from the command line and print the result as JSON.

Run: PYTHONPATH=. python scripts/linkd_search.py "ML engineers at Google" --limit 5 --stream
"""
import argparse
import asyncio
import sys

import structlog
from pydantic import ValidationError

from config.settings import get_settings
from linkd.core.client import LinkdClient
from linkd.core.errors import LinkdError
from linkd.core.models import SearchQuery

log = structlog.get_logger()


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search the Linkd professional network.")
    parser.add_argument("query", help="Free-text search query")
    parser.add_argument("--limit", type=_positive_int, default=10, help="Maximum results (default 10)")
    parser.add_argument("--school", action="append", default=[], help="School filter (repeatable)")
    parser.add_argument("--sort-by", default=None)
    parser.add_argument("--sort-order", choices=["asc", "desc"], default=None)
    parser.add_argument("--stream", action="store_true", help="Use the WebSocket endpoint")
    return parser.parse_args(argv)


def build_query(args: argparse.Namespace) -> SearchQuery | None:
    """SearchQuery from parsed arguments, or None (logged) when the input is invalid."""
    try:
        return SearchQuery(
            query=args.query,
            max_results=args.limit,
            filters={"school": args.school} if args.school else {},
            sort_by=args.sort_by,
            sort_order=args.sort_order,
        )
    except ValidationError as exc:
        log.error("linkd_search.invalid_query", errors=[e["msg"] for e in exc.errors()])
        return None


async def main(argv: list[str]) -> int:
    args = _parse_args(argv)
    query = build_query(args)
    if query is None:
        return 1

    client = LinkdClient(settings=get_settings())
    try:
        if args.stream:
            result = await client.search_stream(query)
        else:
            result = await client.search(query)
    except LinkdError as exc:
        log.error("linkd_search.failed", error=str(exc), error_type=type(exc).__name__)
        return 1

    print(result.model_dump_json(indent=2, exclude_none=True))
    return 0 if not result.failed else 2


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
