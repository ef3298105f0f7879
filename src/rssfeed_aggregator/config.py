"""Runtime configuration for RSS Feed Aggregator."""

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

N = TypeVar("N", int, float)

SOURCE_CSV_URL = (
    "https://raw.githubusercontent.com/timqian/chinese-independent-blogs/master/blogs-original.csv"
)

PAGE_SIZE = 20
FETCH_CONCURRENCY = 100
FETCH_TIMEOUT = 30.0
SAMPLE_RATIO = 0.01
USER_AGENT = "utc8times-bot"

# Individual article links that must never be published.
ARTICLE_LINK_BLACKLIST: tuple[str, ...] = (
    # "https://example.com/bad-article",
)

# Sources not listed in the upstream directory, same shape as a Source.
EXTRA_SOURCES: tuple[dict, ...] = (
    # {
    #     "rsslink": "https://example.com/feed.xml",
    #     "blogname": "Example Blog",
    #     "homepage": "https://example.com",
    # },
)

RSS_DOMAIN_BLACKLIST: tuple[str, ...] = (
    "lukefan.com",
    "www.yystv.cn",
    "www.wikimoe.com",
    "www.cheshirex.com",
    "ednovas.xyz",
    "masuit.net",
    "masuit.com",
    "www.changhai.org",
    "www.coderli.com",
    "mathpretty.com",
    "qiangwaikan.com",
    "zelikk.blogspot.com",
    "51.ruyo.net",
)


@dataclass(frozen=True)
class Settings:
    """Everything a run needs to know, resolved once at startup."""

    root_dir: Path
    source_csv_url: str = SOURCE_CSV_URL
    page_size: int = PAGE_SIZE
    fetch_concurrency: int = FETCH_CONCURRENCY
    fetch_timeout: float = FETCH_TIMEOUT
    sample_ratio: float = SAMPLE_RATIO
    user_agent: str = USER_AGENT
    extra_sources: tuple[dict, ...] = EXTRA_SOURCES
    domain_blacklist: tuple[str, ...] = RSS_DOMAIN_BLACKLIST
    link_blacklist: tuple[str, ...] = ARTICLE_LINK_BLACKLIST

    @property
    def data_dir(self) -> Path:
        return self.root_dir / "data"

    @property
    def pages_dir(self) -> Path:
        return self.root_dir / "public" / "pages"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "db.csv"


def _env_number(
    environ: Mapping[str, str],
    name: str,
    default: N,
    cast: Callable[[str], N],
) -> N:
    """Read a positive number from the environment, or return ``default``."""
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; falling back to %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Non-positive %s=%r; falling back to %s", name, raw, default)
        return default
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables (``RSS_*``)."""
    if environ is None:
        environ = os.environ

    return Settings(
        root_dir=Path(environ.get("RSS_ROOT_DIR") or Path.cwd()),
        source_csv_url=environ.get("RSS_SOURCE_CSV_URL") or SOURCE_CSV_URL,
        page_size=_env_number(environ, "RSS_PAGE_SIZE", PAGE_SIZE, int),
        fetch_concurrency=_env_number(environ, "RSS_FETCH_CONCURRENCY", FETCH_CONCURRENCY, int),
        fetch_timeout=_env_number(environ, "RSS_FETCH_TIMEOUT", FETCH_TIMEOUT, float),
        sample_ratio=_env_number(environ, "RSS_SAMPLE_RATIO", SAMPLE_RATIO, float),
        user_agent=environ.get("RSS_USER_AGENT") or USER_AGENT,
    )
