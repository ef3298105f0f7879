"""Merge new rows into the store and assign identifiers."""

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from rssfeed_aggregator.models import Record
from rssfeed_aggregator.normalize import parse_date

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class MergeResult:
    """Merged records in display order (newest first) and store order (by id)."""

    display: list[Record]
    stored: list[Record]


def numeric_id(value) -> int | None:
    """Positive integer value of an id string, or None if it has none."""
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0 or not number.is_integer():
        return None
    return int(number)


def assign_ids(existing: list[Record], new_rows: list[Record]) -> list[Record]:
    """Return existing + new rows, each with a unique positive id.

    Valid ids are kept; rows without one (or repeating an id already taken
    earlier in the list) get ``max existing id + 1``, ``+ 2``, ...
    """
    next_id = max((numeric_id(row.id) or 0 for row in existing), default=0)
    claimed: set[int] = set()
    out = []
    for row in [*existing, *new_rows]:
        current = numeric_id(row.id)
        if current is None or current in claimed:
            next_id += 1
            while next_id in claimed:
                next_id += 1
            current = next_id
        claimed.add(current)
        out.append(replace(row, id=str(current)))
    return out


def effective_timestamp(record: Record) -> datetime:
    return parse_date(record.createdat) or parse_date(record.crawledat) or EPOCH


def sort_latest(records: list[Record]) -> list[Record]:
    return sorted(records, key=effective_timestamp, reverse=True)


def sort_oldest(records: list[Record]) -> list[Record]:
    return sorted(records, key=effective_timestamp)


def renumber_chronologically(records: list[Record]) -> list[Record]:
    """Give ids 1..N by age (oldest first) while keeping the given order."""
    id_map = {row.link: str(index) for index, row in enumerate(sort_oldest(records), start=1)}
    return [replace(row, id=id_map.get(row.link, row.id)) for row in records]


def merge_records(
    existing: list[Record], new_rows: list[Record], *, rebuild: bool = False
) -> MergeResult:
    """Union the store with new rows, assign ids and order the result."""
    display = sort_latest(assign_ids(existing, new_rows))
    if rebuild:
        display = renumber_chronologically(display)
    stored = sorted(display, key=lambda row: numeric_id(row.id) or 0)
    logger.debug("Merged %d existing and %d new rows", len(existing), len(new_rows))
    return MergeResult(display=display, stored=stored)
