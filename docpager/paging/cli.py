"""CLI for fetching one page (or its query plan) from a MongoDB collection."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any

from bson import json_util
from bson.json_util import RELAXED_JSON_OPTIONS

from docpager.config.logging_config import setup_logging
from docpager.config.settings import get_settings
from docpager.paging.models import PaginateOptions
from docpager.paging.paginator import VERBOSITY_MODES, Paginator
from docpager.storage.connection import close_client, get_collection


def build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(description="Fetch a keyset-paginated page from MongoDB.")
    parser.add_argument("--collection", required=True, help="Collection to read.")
    parser.add_argument(
        "--sort",
        action="append",
        default=[],
        help=(
            "Sort field as path[:asc|desc]; repeat for secondary fields. "
            "The -path form needs an equals sign: --sort=-createdAt."
        ),
    )
    parser.add_argument("--limit", type=int, default=None, help="Page size (0 = no limit).")
    side = parser.add_mutually_exclusive_group()
    side.add_argument("--after", default=None, help="End cursor of the previous page.")
    side.add_argument("--before", default=None, help="Start cursor of the next page.")
    parser.add_argument("--filter", default=None, help="Query filter as Extended JSON.")
    parser.add_argument(
        "--explain",
        choices=VERBOSITY_MODES,
        default=None,
        help="Print the query plan at this verbosity instead of the page.",
    )
    parser.add_argument("--uri", default=None, help="MongoDB connection string.")
    parser.add_argument("--database", default=None, help="Database name.")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log predicates and pipelines to stderr."
    )
    return parser


async def _run(args: argparse.Namespace) -> Any:
    collection = get_collection(args.collection, database=args.database, uri=args.uri)
    options = PaginateOptions(sort=args.sort, limit=args.limit, after=args.after, before=args.before)
    query = json_util.loads(args.filter) if args.filter else None
    paginator = Paginator()

    if args.explain:
        return await paginator.explain_paged(collection, options, args.explain, filter=query)
    page = await paginator.find_paged(collection, options, filter=query)
    return page.to_dict()


def main(argv: list[str] | None = None) -> int:
    """Run one paginated read and print it as Extended JSON."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    settings.ensure_dirs()
    setup_logging(
        log_dir=settings.logs_dir,
        settings=settings.logging,
        level=logging.DEBUG if args.verbose else None,
    )

    logger = logging.getLogger(__name__)

    try:
        output = asyncio.run(_run(args))
    except Exception as exc:
        logger.exception("Paginated read failed: %s", exc)
        return 1
    finally:
        close_client(args.uri)

    print(json_util.dumps(output, json_options=RELAXED_JSON_OPTIONS, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
