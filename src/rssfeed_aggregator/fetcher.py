"""Bounded-concurrency feed fetching for RSS Feed Aggregator."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

import httpx

from rssfeed_aggregator.config import FETCH_CONCURRENCY, FETCH_TIMEOUT, USER_AGENT
from rssfeed_aggregator.feed_parser import FeedParseError, parse_feed
from rssfeed_aggregator.models import FetchOutcome, Source

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int, int], None]


async def fetch_feed(
    client: httpx.AsyncClient, source: Source, *, timeout: float = FETCH_TIMEOUT
) -> FetchOutcome:
    """Fetch and parse one feed. Never raises for per-source failures."""

    async def _get() -> httpx.Response:
        response = await client.get(source.feed_url)
        response.raise_for_status()
        return response

    try:
        # wait_for cancels the request when the deadline passes
        response = await asyncio.wait_for(_get(), timeout=timeout)
        feed = parse_feed(response.content)
    except asyncio.TimeoutError:
        logger.warning("Timeout after %ss: %s", timeout, source.feed_url)
        return FetchOutcome(source=source, error=f"timeout after {timeout}s")
    except httpx.HTTPStatusError as e:
        logger.warning(
            "Failed to fetch RSS: %s (HTTP %d)", source.feed_url, e.response.status_code
        )
        return FetchOutcome(source=source, error=f"HTTP {e.response.status_code}")
    except httpx.HTTPError as e:
        logger.warning("Failed to fetch RSS: %s (%s)", source.feed_url, e)
        return FetchOutcome(source=source, error=str(e) or type(e).__name__)
    except FeedParseError as e:
        logger.warning("Failed to parse RSS: %s (%s)", source.feed_url, e)
        return FetchOutcome(source=source, error=str(e))
    except Exception as e:
        logger.warning("Unexpected error for %s: %s", source.feed_url, e)
        return FetchOutcome(source=source, error=str(e) or type(e).__name__)

    return FetchOutcome(source=source, feed=feed)


async def run_with_concurrency(
    items: Sequence[T],
    limit: int,
    task: Callable[[T], Awaitable[R]],
    on_progress: ProgressCallback | None = None,
) -> list[R]:
    """Run ``task`` over ``items`` with at most ``limit`` in flight.

    Results keep the order of ``items`` regardless of completion order.
    """
    total = len(items)
    results: list = [None] * total
    cursor = 0
    done = 0

    async def worker() -> None:
        nonlocal cursor, done
        while cursor < total:
            current = cursor
            cursor += 1
            results[current] = await task(items[current])
            done += 1
            if on_progress:
                on_progress(done, total)

    workers = [worker() for _ in range(min(max(limit, 1), total))]
    await asyncio.gather(*workers)
    return results


async def fetch_all(
    sources: Sequence[Source],
    *,
    concurrency: int = FETCH_CONCURRENCY,
    timeout: float = FETCH_TIMEOUT,
    user_agent: str = USER_AGENT,
    on_progress: ProgressCallback | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[FetchOutcome]:
    """Fetch every source; one outcome per source, in source order."""
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(
            headers={"user-agent": user_agent},
            follow_redirects=True,
            timeout=timeout,
            limits=httpx.Limits(max_connections=concurrency),
        )

    try:
        return await run_with_concurrency(
            sources,
            concurrency,
            lambda source: fetch_feed(client, source, timeout=timeout),
            on_progress,
        )
    finally:
        if owns_client:
            await client.aclose()
