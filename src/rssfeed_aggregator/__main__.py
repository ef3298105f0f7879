"""Entry point for RSS Feed Aggregator: python -m rssfeed_aggregator"""

import argparse
import asyncio
import logging
import os
import sys

from rssfeed_aggregator.config import load_settings
from rssfeed_aggregator.pipeline import run
from rssfeed_aggregator.sources import SourceListError
from rssfeed_aggregator.store import StoreError

logger = logging.getLogger("rssfeed_aggregator")


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("RSS_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="rssfeed-aggregator",
        description="Fetch every blog feed and publish a paginated, deduplicated article list.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="fetch a small random sample of feeds and write nothing",
    )
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="renumber every stored article by publication date",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run one aggregation pass. Returns the process exit status."""
    args = parse_args(argv)
    configure_logging()
    settings = load_settings()

    try:
        asyncio.run(run(settings, dry_run=args.dry_run, rebuild=args.rebuild))
    except (SourceListError, StoreError, OSError) as e:
        logger.error("Run aborted: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
