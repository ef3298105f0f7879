"""CSV-backed record store for RSS Feed Aggregator."""

import csv
import logging
import os
import tempfile
from pathlib import Path

from rssfeed_aggregator.models import RECORD_FIELDS, Record

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when an existing store cannot be read or written."""


class RecordStore:
    """Persisted table of every article seen so far."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> list[Record]:
        """Read all records. A missing file is an empty store.

        Raises:
            StoreError: If the file exists but cannot be read or parsed.
        """
        try:
            with self.path.open(newline="", encoding="utf-8") as f:
                reader = csv.DictReader(f)
                if reader.fieldnames is None:
                    return []
                missing = [name for name in ("id", "link") if name not in reader.fieldnames]
                if missing:
                    raise StoreError(
                        f"{self.path} is missing columns: {', '.join(missing)}"
                    )
                records = [Record.from_row(row) for row in reader if any(row.values())]
        except FileNotFoundError:
            logger.info("No existing store at %s, starting empty", self.path)
            return []
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise StoreError(f"Could not read {self.path}: {e}") from e

        logger.info("Loaded %d records from %s", len(records), self.path)
        return records

    def save(self, records: list[Record]) -> None:
        """Write records with a header row, replacing the file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=RECORD_FIELDS)
                writer.writeheader()
                for record in records:
                    writer.writerow(record.to_dict())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Wrote %d records to %s", len(records), self.path)

    @staticmethod
    def known_links(records: list[Record]) -> set[str]:
        """Links already present in the store, trimmed."""
        return {record.link.strip() for record in records if record.link.strip()}
