"""Split the ordered record set into fixed-size page documents."""

import json
import logging
import shutil
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from rssfeed_aggregator.config import PAGE_SIZE
from rssfeed_aggregator.models import Page, Record
from rssfeed_aggregator.normalize import parse_date

logger = logging.getLogger(__name__)

FUTURE_TOLERANCE = timedelta(hours=24)


def is_publishable(record: Record, *, now: datetime, link_blacklist: Iterable[str] = ()) -> bool:
    """Whether a stored record may appear on a page."""
    if not record.createdat.strip():
        return False
    if record.link.strip() in link_blacklist:
        return False
    created = parse_date(record.createdat)
    if created is None:
        return False
    return created <= now + FUTURE_TOLERANCE


def paginate(
    records: list[Record],
    *,
    page_size: int = PAGE_SIZE,
    now: datetime | None = None,
    link_blacklist: Iterable[str] = (),
) -> list[Page]:
    """Chunk publishable records into pages; always at least one page."""
    if now is None:
        now = datetime.now(timezone.utc)
    blocked = set(link_blacklist)
    valid = [r for r in records if is_publishable(r, now=now, link_blacklist=blocked)]

    chunks = [valid[i:i + page_size] for i in range(0, len(valid), page_size)] or [[]]
    total_pages = len(chunks)
    return [
        Page(page=number, page_size=page_size, total_pages=total_pages, items=chunk)
        for number, chunk in enumerate(chunks, start=1)
    ]


def page_path(pages_dir: Path, number: int) -> Path:
    return pages_dir / f"page{number}.json"


def write_pages(pages: list[Page], pages_dir: str | Path) -> None:
    """Replace every page file under ``pages_dir`` with ``pages``."""
    pages_dir = Path(pages_dir)
    if pages_dir.exists():
        shutil.rmtree(pages_dir)
    pages_dir.mkdir(parents=True, exist_ok=True)

    for page in pages:
        page_path(pages_dir, page.page).write_text(
            json.dumps(page.to_payload(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
    logger.info("Wrote %d pages to %s", len(pages), pages_dir)
