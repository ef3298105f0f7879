"""One ingestion run: sources -> fetch -> normalize -> merge -> write."""

import asyncio
import logging
import random
from dataclasses import replace
from datetime import datetime, timezone

import httpx

from rssfeed_aggregator.config import Settings
from rssfeed_aggregator.fetcher import fetch_all
from rssfeed_aggregator.merge import merge_records
from rssfeed_aggregator.models import RunSummary
from rssfeed_aggregator.normalize import collect_new_rows
from rssfeed_aggregator.pager import paginate, write_pages
from rssfeed_aggregator.sources import (
    build_sources,
    fetch_source_csv,
    parse_source_csv,
    sample_sources,
)
from rssfeed_aggregator.store import RecordStore

logger = logging.getLogger(__name__)


class ProgressLogger:
    """Logs fetch progress whenever the whole-number percentage changes."""

    def __init__(self) -> None:
        self.last_percent = -1

    def __call__(self, done: int, total: int) -> None:
        percent = 100 if total == 0 else done * 100 // total
        if percent != self.last_percent:
            self.last_percent = percent
            logger.info("Fetching RSS feeds... %d%% (%d/%d)", percent, done, total)


async def run(
    settings: Settings,
    *,
    dry_run: bool = False,
    rebuild: bool = False,
    rng: random.Random | None = None,
    client: httpx.AsyncClient | None = None,
    now: datetime | None = None,
) -> RunSummary:
    """Run the full pipeline once.

    In dry-run mode only a sample of sources is fetched and nothing is
    written. In rebuild mode stored rows lose their ids and every record is
    renumbered by age.

    Raises:
        SourceListError: If the upstream source list is unavailable.
        StoreError: If the existing store cannot be read.
    """
    if not dry_run:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        settings.pages_dir.mkdir(parents=True, exist_ok=True)

    source_csv = await asyncio.to_thread(
        fetch_source_csv,
        settings.source_csv_url,
        user_agent=settings.user_agent,
        timeout=settings.fetch_timeout,
    )
    sources = build_sources(
        parse_source_csv(source_csv),
        extra_sources=settings.extra_sources,
        domain_blacklist=settings.domain_blacklist,
    )
    if dry_run:
        sampled = sample_sources(sources, settings.sample_ratio, rng)
        logger.info("Dry run enabled: sampling %d/%d RSS feeds.", len(sampled), len(sources))
        sources = sampled

    store = RecordStore(settings.db_path)
    existing = store.load()
    carried = []
    if rebuild:
        # Stored rows are re-admitted as new rows ahead of anything fetched.
        known_links: set[str] = set()
        for row in existing:
            link = row.link.strip()
            if link and link not in known_links:
                known_links.add(link)
                carried.append(replace(row, id=""))
        existing = []
    else:
        known_links = store.known_links(existing)

    crawled_at = now or datetime.now(timezone.utc)
    outcomes = await fetch_all(
        sources,
        concurrency=settings.fetch_concurrency,
        timeout=settings.fetch_timeout,
        user_agent=settings.user_agent,
        on_progress=ProgressLogger(),
        client=client,
    )
    failed = sum(1 for outcome in outcomes if not outcome.ok)
    if failed:
        logger.info("%d of %d feeds failed", failed, len(outcomes))

    new_rows = collect_new_rows(outcomes, known_links, crawled_at)
    merged = merge_records(existing, carried + new_rows, rebuild=rebuild)

    if dry_run:
        logger.info("Dry run: skip writing db.csv and page json files.")
    else:
        store.save(merged.stored)
        pages = paginate(
            merged.display,
            page_size=settings.page_size,
            now=crawled_at,
            link_blacklist=settings.link_blacklist,
        )
        write_pages(pages, settings.pages_dir)

    summary = RunSummary(sources=len(sources), new_items=len(new_rows), total=len(merged.display))
    logger.info(
        "Fetched %d RSS feeds. New items: %d. Total: %d.",
        summary.sources,
        summary.new_items,
        summary.total,
    )
    return summary
