"""Exportacion CSV del resultado unido (glucosa + notas)."""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from glucose_notes.consolidate import format_notes
from glucose_notes.model import JoinedRecord
from glucose_notes.timestamps import format_export_timestamp, parse_export_timestamp

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "glucose_data_with_notes.csv"

TIMESTAMP_HEADER = "Timestamp"
GLUCOSE_HEADER = "Glucose Rate (mmol/L)"
NOTES_HEADER = "Notes"
HEADERS = [TIMESTAMP_HEADER, GLUCOSE_HEADER, NOTES_HEADER]


def export_frame(records: Sequence[JoinedRecord]) -> pd.DataFrame:
    """Build the export table: formatted timestamp, mmol/L value, notes text."""
    rows = [
        {
            TIMESTAMP_HEADER: format_export_timestamp(r.timestamp),
            GLUCOSE_HEADER: r.mmol_l,
            NOTES_HEADER: format_notes(r),
        }
        for r in records
    ]
    out = pd.DataFrame(rows, columns=HEADERS)
    out[GLUCOSE_HEADER] = pd.to_numeric(out[GLUCOSE_HEADER], errors="coerce")
    return out


def records_to_csv(records: Sequence[JoinedRecord]) -> str:
    """Render joined records as comma-delimited CSV text.

    Notes containing a comma or a quote are quoted, with inner quotes doubled.
    """
    return export_frame(records).to_csv(index=False, lineterminator="\n")


def write_joined_csv(records: Sequence[JoinedRecord], out_path: Path) -> Path:
    """Write the CSV export, creating parent directories.

    Raises:
        ValueError: If there are no records to export.
    """
    if not records:
        raise ValueError("No data to export")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(records_to_csv(records), encoding="utf-8")
    logger.info("CSV written: %s (%d rows)", out_path, len(records))
    return out_path


def parse_exported_csv(text: str) -> pd.DataFrame:
    """Read an export back into ``datetime``, ``glucose_mmol_l``, ``notes``."""
    df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    missing = [h for h in HEADERS if h not in df.columns]
    if missing:
        raise ValueError(f"Not an export file, missing: {', '.join(missing)}")
    return pd.DataFrame(
        {
            "datetime": df[TIMESTAMP_HEADER].map(parse_export_timestamp),
            "glucose_mmol_l": pd.to_numeric(df[GLUCOSE_HEADER], errors="coerce"),
            "notes": df[NOTES_HEADER],
        }
    )


def read_exported_csv(path: Path) -> pd.DataFrame:
    """Same as :func:`parse_exported_csv` for a file on disk."""
    return parse_exported_csv(path.read_text(encoding="utf-8"))
