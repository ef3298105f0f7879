"""Build the list of feed endpoints from the upstream blog directory."""

import csv
import io
import logging
import random
import re
from collections.abc import Iterable, Mapping
from urllib.parse import urlparse

import httpx

from rssfeed_aggregator.models import Source

logger = logging.getLogger(__name__)

FEED_HEADER_ALIASES = ("rss", "rss link", "rss feed", "rsslink", "feed", "feed link", "feedlink")
FEED_RAW_KEYS = ("RSS", "rss", "rsslink", "feed", "Feed", "Feed Link")

NAME_HEADER_ALIASES = ("introduction", "intro", "name", "blogname", "blog name", "title")
NAME_RAW_KEYS = ("Introduction", "intro", "name", "Blog", "Title", "Blog Name")

HOMEPAGE_HEADER_ALIASES = ("link", "website", "url")
HOMEPAGE_RAW_KEYS = ("Link", "Website", "URL")


class SourceListError(Exception):
    """Raised when the upstream source list cannot be fetched or parsed."""


def fetch_source_csv(url: str, *, user_agent: str, timeout: float = 30.0) -> str:
    """Download the blog directory CSV.

    Raises:
        SourceListError: On any network error or non-2xx response.
    """
    try:
        response = httpx.get(
            url,
            headers={"user-agent": user_agent},
            timeout=timeout,
            follow_redirects=True,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise SourceListError(f"Failed to fetch {url}: {e}") from e
    return response.text


def parse_source_csv(text: str) -> list[dict]:
    """Parse delimited text with a header row into dict records."""
    try:
        reader = csv.DictReader(io.StringIO(text))
        if not reader.fieldnames:
            raise SourceListError("Source list has no header row")
        return [row for row in reader if any(row.values())]
    except csv.Error as e:
        raise SourceListError(f"Malformed source list: {e}") from e


def normalize_header(header: object) -> str:
    """Trim, lowercase and collapse whitespace in a CSV header."""
    return re.sub(r"\s+", " ", str(header or "").strip().lower())


def pick_first_link(*values: object) -> str:
    """Return the first value that looks like an http(s) URL."""
    for value in values:
        if not isinstance(value, str):
            continue
        trimmed = value.strip()
        if trimmed.startswith(("http://", "https://")):
            return trimmed
    return ""


def _lookup(record: Mapping, header_map: dict, aliases: Iterable[str], raw_keys: Iterable[str]) -> list:
    """Candidate values: the first matching alias column, then raw keys."""
    values = []
    for alias in aliases:
        if alias in header_map:
            values.append(record.get(header_map[alias]))
            break
    values.extend(record.get(key) for key in raw_keys)
    return values


def _first_text(values: Iterable) -> str:
    """First non-blank string among ``values``, trimmed."""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def extract_sources(records: Iterable[Mapping]) -> list[Source]:
    """Turn loosely-structured directory rows into Sources.

    Rows without a usable http(s) feed URL are skipped.
    """
    sources = []
    for record in records:
        header_map = {}
        for key in record:
            if key is None:
                continue
            header_map.setdefault(normalize_header(key), key)

        feed_url = pick_first_link(*_lookup(record, header_map, FEED_HEADER_ALIASES, FEED_RAW_KEYS))
        if not feed_url:
            continue

        name = _first_text(_lookup(record, header_map, NAME_HEADER_ALIASES, NAME_RAW_KEYS)) or feed_url
        homepage = pick_first_link(
            *_lookup(record, header_map, HOMEPAGE_HEADER_ALIASES, HOMEPAGE_RAW_KEYS)
        )
        sources.append(Source(feed_url=feed_url, name=name, homepage=homepage))
    return sources


def _configured_source(entry: Mapping) -> Source:
    """Source from an EXTRA_SOURCES entry (rsslink/blogname/homepage)."""
    return Source(
        feed_url=str(entry.get("rsslink") or "").strip(),
        name=str(entry.get("blogname") or "").strip(),
        homepage=str(entry.get("homepage") or "").strip(),
    )


def dedupe_sources(sources: Iterable[Source]) -> list[Source]:
    """Drop repeated feed URLs (case-insensitive), keeping the first."""
    seen: set[str] = set()
    out = []
    for source in sources:
        if source.key in seen:
            continue
        seen.add(source.key)
        out.append(source)
    return out


def get_hostname(url: str) -> str:
    """Lowercased host of ``url``, or ``""`` if it has none."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def filter_blacklisted(sources: Iterable[Source], domain_blacklist: Iterable[str]) -> list[Source]:
    """Drop sources whose feed host is blacklisted or cannot be determined."""
    blocked = {domain.lower() for domain in domain_blacklist}
    out = []
    for source in sources:
        hostname = get_hostname(source.feed_url)
        if hostname and hostname not in blocked:
            out.append(source)
    return out


def sample_sources(sources: list[Source], ratio: float, rng: random.Random | None = None) -> list[Source]:
    """Pick a random ``ratio`` of sources, at least one."""
    if ratio >= 1 or not sources:
        return sources
    rng = rng or random.Random()
    count = max(1, int(len(sources) * ratio))
    shuffled = list(sources)
    rng.shuffle(shuffled)
    return shuffled[:count]


def build_sources(
    records: Iterable[Mapping],
    *,
    extra_sources: Iterable[Mapping] = (),
    domain_blacklist: Iterable[str] = (),
    sample_ratio: float | None = None,
    rng: random.Random | None = None,
) -> list[Source]:
    """Build the ordered, deduplicated, filtered source list for a run."""
    sources = extract_sources(records)
    extra = [s for s in (_configured_source(e) for e in extra_sources) if s.feed_url]
    sources = dedupe_sources(sources + extra)
    sources = filter_blacklisted(sources, domain_blacklist)
    if sample_ratio is not None:
        sources = sample_sources(sources, sample_ratio, rng)
    return sources
