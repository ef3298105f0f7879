"""Tests for bounded-concurrency feed fetching."""

import asyncio

import httpx

from rssfeed_aggregator.fetcher import fetch_all, fetch_feed, run_with_concurrency
from rssfeed_aggregator.models import Source


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_fetch_feed_success(sample_rss_xml, source):
    async def handler(request):
        return httpx.Response(200, text=sample_rss_xml)

    async def go():
        async with _client(handler) as client:
            return await fetch_feed(client, source, timeout=5)

    outcome = asyncio.run(go())

    assert outcome.ok
    assert outcome.source == source
    assert outcome.feed.title == "Test Feed"
    assert len(outcome.feed.items) == 2


def test_fetch_feed_non_2xx_is_failure(source):
    async def handler(request):
        return httpx.Response(404, text="missing")

    async def go():
        async with _client(handler) as client:
            return await fetch_feed(client, source, timeout=5)

    outcome = asyncio.run(go())

    assert not outcome.ok
    assert outcome.feed is None
    assert outcome.error == "HTTP 404"


def test_fetch_feed_network_error_is_failure(source):
    async def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async def go():
        async with _client(handler) as client:
            return await fetch_feed(client, source, timeout=5)

    outcome = asyncio.run(go())

    assert not outcome.ok
    assert "connection refused" in outcome.error


def test_fetch_feed_unparsable_document_is_failure(sample_not_a_feed_xml, source):
    async def handler(request):
        return httpx.Response(200, text=sample_not_a_feed_xml)

    async def go():
        async with _client(handler) as client:
            return await fetch_feed(client, source, timeout=5)

    assert not asyncio.run(go()).ok


def test_fetch_all_one_timeout_two_successes(sample_rss_xml, sample_atom_xml):
    sources = [
        Source(feed_url="https://fast-a.example/feed"),
        Source(feed_url="https://slow.example/feed"),
        Source(feed_url="https://fast-b.example/feed"),
    ]

    async def handler(request):
        if request.url.host == "slow.example":
            await asyncio.sleep(5)
        if request.url.host == "fast-a.example":
            # finish after fast-b so completion order differs from input order
            await asyncio.sleep(0.05)
            return httpx.Response(200, text=sample_rss_xml)
        return httpx.Response(200, text=sample_atom_xml)

    progress = []

    async def go():
        async with _client(handler) as client:
            return await fetch_all(
                sources,
                concurrency=3,
                timeout=0.5,
                on_progress=lambda done, total: progress.append((done, total)),
                client=client,
            )

    outcomes = asyncio.run(go())

    assert [o.source for o in outcomes] == sources
    assert [o.ok for o in outcomes] == [True, False, True]
    assert outcomes[0].feed.title == "Test Feed"
    assert outcomes[2].feed.title == "Test Atom Feed"
    assert "timeout" in outcomes[1].error
    assert progress == [(1, 3), (2, 3), (3, 3)]


def test_run_with_concurrency_limits_in_flight_and_keeps_order():
    in_flight = 0
    peak = 0

    async def task(n):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01 * (10 - n))
        in_flight -= 1
        return n * n

    results = asyncio.run(run_with_concurrency(list(range(10)), 3, task))

    assert results == [n * n for n in range(10)]
    assert peak == 3


def test_run_with_concurrency_empty():
    async def task(n):
        raise AssertionError("should not run")

    assert asyncio.run(run_with_concurrency([], 100, task)) == []
