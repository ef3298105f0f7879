"""Data models for RSS Feed Aggregator."""

from dataclasses import asdict, dataclass, field

RECORD_FIELDS = ("id", "title", "link", "rsslink", "blogname", "createdat", "crawledat")


@dataclass(frozen=True)
class Source:
    """A feed endpoint taken from the blog directory."""

    feed_url: str
    name: str = ""
    homepage: str = ""

    @property
    def key(self) -> str:
        return self.feed_url.lower()


@dataclass
class Record:
    """A single article row, stored exactly as it is persisted."""

    id: str
    title: str
    link: str
    rsslink: str
    blogname: str
    createdat: str = ""
    crawledat: str = ""

    @classmethod
    def from_row(cls, row: dict) -> "Record":
        """Build a record from a CSV row, tolerating missing columns."""
        return cls(**{name: (row.get(name) or "") for name in RECORD_FIELDS})

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ParsedFeed:
    """Result of parsing an RSS/Atom document."""

    title: str
    items: list[dict] = field(default_factory=list)


@dataclass
class FetchOutcome:
    """Per-source result of a fetch: either a parsed feed or an error."""

    source: Source
    feed: ParsedFeed | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.feed is not None and self.error is None


@dataclass
class Page:
    """One published page of records."""

    page: int
    page_size: int
    total_pages: int
    items: list[Record]

    def to_payload(self) -> dict:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass
class RunSummary:
    """Counts reported at the end of a run."""

    sources: int
    new_items: int
    total: int
