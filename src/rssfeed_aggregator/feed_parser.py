"""RSS/Atom feed parsing using feedparser."""

import feedparser

from rssfeed_aggregator.models import ParsedFeed


class FeedParseError(Exception):
    """Raised when a document cannot be parsed as a feed."""


def parse_feed(text: str | bytes) -> ParsedFeed:
    """Parse an already-downloaded RSS or Atom document.

    Items are returned as feedparser entries (dict subclasses), so the
    date and link fields keep whatever shape the feed used.

    Raises:
        FeedParseError: If the document is not a usable feed.
    """
    if not text or not text.strip():
        raise FeedParseError("Empty document")
    if isinstance(text, str):
        # feedparser treats str input as a possible URL or filename
        text = text.encode("utf-8")

    parsed = feedparser.parse(text)

    if not parsed.get("version") and not parsed.entries:
        if parsed.bozo and parsed.get("bozo_exception"):
            raise FeedParseError(
                f"Document is not a valid RSS or Atom feed: {parsed.bozo_exception}"
            )
        raise FeedParseError("Document is not a valid RSS or Atom feed")

    return ParsedFeed(
        title=(parsed.feed.get("title") or "").strip(),
        items=list(parsed.entries),
    )
