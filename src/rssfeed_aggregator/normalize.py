"""Link and date normalization for heterogeneous feed items.

Feeds disagree on where an item's link and publication date live and on
what shape they take: a plain string, a list of candidates, or a nested
object (``{"href": ...}``, ``{"_": ...}``, ``{"#text": ...}``). The helpers
here flatten those shapes with a fixed priority order so every item yields
at most one canonical link and one timestamp.
"""

import logging
import re
from collections import deque
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from dateutil import parser as dtparser

from rssfeed_aggregator.models import FetchOutcome, Record

logger = logging.getLogger(__name__)

LINK_FIELDS = ("link", "guid", "id", "url", "links", "enclosure", "enclosures")
LINK_OBJECT_KEYS = ("href", "url", "link", "value", "id")

DATE_FIELDS = (
    "isoDate",
    "pubDate",
    "published",
    "updated",
    "created",
    "modified",
    "issued",
    "date",
    "dc:date",
    "dcterms:modified",
    "dcterms:issued",
    "dcterms:created",
    "atom:published",
    "atom:updated",
    "published_at",
    "updated_at",
    # feedparser flattens namespaced elements to prefix_name
    "dc_date",
    "dcterms_modified",
    "dcterms_issued",
    "dcterms_created",
)
DATE_OBJECT_KEYS = ("value", "_", "#text")

MIN_YEAR = 1970
DATE_DEFAULT = datetime(MIN_YEAR, 1, 1)
# four-digit runs not part of a time, a UTC offset or a longer number
YEAR_TOKEN = re.compile(r"(?<![\d+\-:])(\d{4})(?![\d:])")


def _is_sequence(value: object) -> bool:
    return isinstance(value, (list, tuple))


def _as_text(value: object) -> str:
    """Strings and numbers as text; anything else as ``""``."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def resolve_link(*candidates) -> str:
    """Breadth-first search for the first non-empty string among candidates.

    Strings win immediately, lists enqueue their members and mappings
    enqueue their ``href``/``url``/``link``/``value``/``id`` entries.
    """
    queue = deque(candidates)
    while queue:
        value = queue.popleft()
        if not value:
            continue
        if isinstance(value, str):
            trimmed = value.strip()
            if trimmed:
                return trimmed
            continue
        if _is_sequence(value):
            queue.extend(value)
            continue
        if isinstance(value, Mapping):
            queue.extend(value.get(key) for key in LINK_OBJECT_KEYS if value.get(key))
            continue
        text = _as_text(value).strip()
        if text:
            return text
    return ""


def item_link(item: Mapping) -> str:
    """Canonical link of a feed item, or ``""`` if it has none."""
    return resolve_link(*(item.get(name) for name in LINK_FIELDS))


def _has_early_year(value: str) -> bool:
    """Whether ``value`` spells out a four-digit year before MIN_YEAR."""
    return any(int(year) < MIN_YEAR for year in YEAR_TOKEN.findall(value))


def parse_date(value: str) -> datetime | None:
    """Parse RFC 822 or ISO-ish date strings into an aware UTC datetime.

    Returns None for anything that is not a full calendar date: bare numbers,
    strings without digits (weekday names), out-of-range offsets and years
    before 1970.
    """
    if not value or not value.strip():
        return None
    value = value.strip()
    if value.isdigit() or not any(ch.isdigit() for ch in value) or _has_early_year(value):
        return None

    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None

    try:
        if parsed is None:
            # missing parts come from a fixed default, never from today
            parsed = dtparser.parse(value, default=DATE_DEFAULT)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        parsed = parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None

    if parsed.year < MIN_YEAR:
        return None
    return parsed


def normalize_date_value(value) -> str:
    """Flatten a possibly wrapped date value to a string, or ``""``."""
    if not value:
        return ""
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value).strip()
    if _is_sequence(value):
        for entry in value:
            normalized = normalize_date_value(entry)
            if normalized and parse_date(normalized):
                return normalized
        return ""
    if isinstance(value, Mapping):
        for key in DATE_OBJECT_KEYS:
            if value.get(key):
                return normalize_date_value(value[key])
    return ""


def item_date(item: Mapping) -> datetime | None:
    """The first date-bearing field of ``item`` that parses, if any."""
    for name in DATE_FIELDS:
        normalized = normalize_date_value(item.get(name))
        if not normalized:
            continue
        parsed = parse_date(normalized)
        if parsed:
            return parsed
    return None


def format_date(dt: datetime | None) -> str:
    """ISO-8601 UTC with milliseconds, e.g. ``2026-02-13T10:00:00.000Z``."""
    if dt is None:
        return ""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_row(
    *,
    title: object,
    link: str,
    rsslink: str,
    blogname: object,
    createdat: datetime | None,
    crawledat: datetime | None,
) -> Record:
    """A store row with every field trimmed and no id yet."""
    return Record(
        id="",
        title=_as_text(title).strip(),
        link=_as_text(link).strip(),
        rsslink=_as_text(rsslink).strip(),
        blogname=_as_text(blogname).strip(),
        createdat=format_date(createdat),
        crawledat=format_date(crawledat),
    )


def collect_new_rows(
    outcomes: Iterable[FetchOutcome], known_links: set[str], crawled_at: datetime
) -> list[Record]:
    """Normalize every item of every fetched feed into not-yet-seen rows.

    ``known_links`` is updated as rows are accepted, so the first item with
    a given link wins even across sources.
    """
    rows = []
    for outcome in outcomes:
        if not outcome or not outcome.ok:
            continue
        source, feed = outcome.source, outcome.feed
        for item in feed.items:
            link = item_link(item)
            if not link or link in known_links:
                continue

            row = build_row(
                title=_as_text(item.get("title")).strip() or feed.title or link,
                link=link,
                rsslink=source.feed_url,
                blogname=source.name or feed.title or source.feed_url,
                createdat=item_date(item),
                crawledat=crawled_at,
            )
            known_links.add(link)
            rows.append(row)
    logger.debug("Collected %d new rows", len(rows))
    return rows
