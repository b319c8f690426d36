"""Lectura de exportaciones CSV de notas (separadas por ``;``)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

import pandas as pd

from glucose_notes.errors import MalformedTimestamp, MissingColumns
from glucose_notes.model import Annotation
from glucose_notes.sources.base import DataSource, read_csv_text
from glucose_notes.timestamps import parse_device_timestamp

logger = logging.getLogger(__name__)

DELIMITER = ";"
REQUIRED_COLUMNS = ("timestamp", "note", "details")


@dataclass(frozen=True)
class NoteColumns:
    """Column names of the annotation export."""

    timestamp: str = "timestamp"
    note: str = "note"
    details: str = "details"

    @classmethod
    def from_header(cls, header: list[str]) -> NoteColumns:
        """Check that ``timestamp``, ``note`` and ``details`` exist, any order.

        Raises:
            MissingColumns: If any of the three is absent.
        """
        missing = [name for name in REQUIRED_COLUMNS if name not in header]
        if missing:
            raise MissingColumns("notes data", missing)
        return cls()

    def rows(self, df: pd.DataFrame) -> Iterable[tuple[str, str, str]]:
        """(timestamp, note, details) cells in file order."""
        return zip(df[self.timestamp], df[self.note], df[self.details])


class NotesSource(DataSource):
    """Annotation CSV export reader."""

    def load(self) -> list[Annotation]:
        return self.load_annotations()

    def load_annotations(self) -> list[Annotation]:
        """Read and parse the export file.

        Raises:
            FileReadFailure: If the file cannot be read.
            MissingColumns: If the header lacks the required columns.
        """
        return parse_notes_csv(self.read_text())


def parse_notes_csv(text: str) -> list[Annotation]:
    """Parse annotation CSV text.

    The header is on the first line. Double-quoted fields may contain ``;``
    and ``""`` stands for a literal quote inside them. A row is kept when it
    has a timestamp and at least one of note/details. Rows sharing a
    timestamp are all returned; no deduplication happens here.

    Args:
        text: Complete file contents.

    Returns:
        Annotations in file order.

    Raises:
        MissingColumns: If ``timestamp``, ``note`` or ``details`` is missing.
    """
    df = read_csv_text(text, sep=DELIMITER, quotechar='"', skipinitialspace=True)
    columns = NoteColumns.from_header(list(df.columns))

    out: list[Annotation] = []
    skipped = 0
    for row_no, (raw_ts, note, details) in enumerate(columns.rows(df), start=1):
        if not raw_ts or not (note or details):
            skipped += 1
            continue
        try:
            ts = parse_device_timestamp(raw_ts)
        except MalformedTimestamp as exc:
            logger.debug("Row %d skipped: %s", row_no, exc)
            skipped += 1
            continue
        out.append(Annotation(timestamp=ts, note=note, details=details))

    logger.info("Notes CSV: %d annotations, %d rows skipped", len(out), skipped)
    return out


def combine_annotations(
    annotations: Iterable[Annotation], separator: str = "; "
) -> list[Annotation]:
    """Merge annotations that share a timestamp into a single one.

    The join keeps only the last annotation per instant; callers who want
    every note on the chart can pass the notes through this first. Order of
    first appearance is kept and empty parts are omitted.
    """
    notes: dict[datetime, list[str]] = {}
    details: dict[datetime, list[str]] = {}
    for ann in annotations:
        notes.setdefault(ann.timestamp, [])
        details.setdefault(ann.timestamp, [])
        if ann.note:
            notes[ann.timestamp].append(ann.note)
        if ann.details:
            details[ann.timestamp].append(ann.details)
    return [
        Annotation(
            timestamp=ts,
            note=separator.join(notes[ts]),
            details=separator.join(details[ts]),
        )
        for ts in notes
    ]
