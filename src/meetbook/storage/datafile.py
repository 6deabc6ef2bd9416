"""Flat-file persistence for the contact manager."""

from __future__ import annotations

import contextlib
import csv
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

from meetbook.errors import DataFormatError
from meetbook.models import Contact, Meeting
from meetbook.storage.codec import RecordCodec, Snapshot

logger = logging.getLogger(__name__)

# csv rejects fields over 128 KiB by default; notes can grow past that.
FIELD_SIZE_LIMIT = 2**31 - 1


class DataFile:
    """One delimited text file holding every contact and meeting."""

    def __init__(self, path: Path, codec: RecordCodec | None = None) -> None:
        self.path = Path(path)
        self.codec = codec or RecordCodec()

    def _dialect(self) -> dict:
        return {
            "delimiter": self.codec.delimiter,
            "quotechar": '"',
            "quoting": csv.QUOTE_MINIMAL,
            "lineterminator": "\n",
            "strict": True,
        }

    def write(self, contacts: Iterable[Contact], meetings: Iterable[Meeting]) -> bool:
        """Write all records. Returns False (and logs) if the write failed.

        Rows go to a sibling ``.tmp`` file first, then replace the target, so
        a failed save leaves the previous file untouched.
        """
        rows = self.codec.encode(contacts, meetings)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8", newline="") as f:
                csv.writer(f, **self._dialect()).writerows(rows)
            os.replace(tmp, self.path)
        except OSError:
            logger.exception("Failed to save %s", self.path)
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            return False
        logger.info("Saved %d records to %s", len(rows), self.path)
        return True

    def read(self) -> Snapshot | None:
        """Read all records, or None if the file does not exist.

        Rows the csv layer cannot split are logged and skipped. A file that
        is not valid utf-8 raises DataFormatError.
        """
        if not self.path.exists():
            logger.warning("%s does not exist, starting empty", self.path)
            return None
        if csv.field_size_limit() < FIELD_SIZE_LIMIT:
            csv.field_size_limit(FIELD_SIZE_LIMIT)
        with self.path.open("r", encoding="utf-8", newline="") as f:
            reader = csv.reader(f, **self._dialect())
            try:
                snapshot = self.codec.decode(self._rows(reader))
            except UnicodeDecodeError as e:
                raise DataFormatError(f"{self.path}: not valid utf-8 ({e})") from e
        logger.info(
            "Loaded %d contacts and %d meetings from %s",
            len(snapshot.contacts), len(snapshot.meetings), self.path,
        )
        return snapshot

    def _rows(self, reader: Iterator[list[str]]) -> Iterator[list[str]]:
        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except csv.Error as e:
                logger.warning("%s line %d: %s, skipped", self.path, reader.line_num, e)
                continue
            yield row
