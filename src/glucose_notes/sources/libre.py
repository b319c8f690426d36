"""Lectura de exportaciones CSV de glucosa (LibreView / FreeStyle Libre)."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import pandas as pd

from glucose_notes.errors import MalformedTimestamp, MissingColumns
from glucose_notes.model import GlucoseReading
from glucose_notes.sources.base import DataSource, read_csv_text
from glucose_notes.timestamps import parse_device_timestamp

logger = logging.getLogger(__name__)

MG_DL_TO_MMOL_L = 0.0555

TIMESTAMP_COLUMN = "Device Timestamp"


class GlucoseUnit(str, Enum):
    """Unit convention of the glucose columns."""

    MMOL_L = "mmol/L"
    MG_DL = "mg/dL"

    @property
    def historic_column(self) -> str:
        return f"Historic Glucose {self.value}"

    @property
    def scan_column(self) -> str:
        return f"Scan Glucose {self.value}"


@dataclass(frozen=True)
class GlucoseColumns:
    """Column names resolved once from the header row."""

    timestamp: str
    historic: str | None
    scan: str | None
    unit: GlucoseUnit

    @classmethod
    def from_header(cls, header: list[str]) -> GlucoseColumns:
        """Resolve columns; mg/dL is only tried when no mmol/L column exists.

        Raises:
            MissingColumns: If the timestamp column or every glucose column
                is missing.
        """
        missing: list[str] = []
        if TIMESTAMP_COLUMN not in header:
            missing.append(TIMESTAMP_COLUMN)

        unit = GlucoseUnit.MMOL_L
        if unit.historic_column not in header and unit.scan_column not in header:
            unit = GlucoseUnit.MG_DL
        historic = unit.historic_column if unit.historic_column in header else None
        scan = unit.scan_column if unit.scan_column in header else None
        if historic is None and scan is None:
            missing.append(
                "Historic/Scan Glucose mmol/L or Historic/Scan Glucose mg/dL"
            )

        if missing:
            raise MissingColumns("glucose data", missing)
        return cls(
            timestamp=TIMESTAMP_COLUMN, historic=historic, scan=scan, unit=unit
        )

    def timestamps(self, df: pd.DataFrame) -> pd.Series:
        return df[self.timestamp]

    def raw_values(self, df: pd.DataFrame) -> pd.Series:
        """Historic cell when not empty, scan cell otherwise."""
        if self.historic is None:
            return df[self.scan]
        if self.scan is None:
            return df[self.historic]
        historic = df[self.historic]
        return historic.where(historic != "", df[self.scan])


class LibreSource(DataSource):
    """Glucose monitor CSV export reader."""

    def load(self) -> list[GlucoseReading]:
        return self.load_readings()

    def load_readings(self) -> list[GlucoseReading]:
        """Read and parse the export file.

        Raises:
            FileReadFailure: If the file cannot be read.
            MissingColumns: If the header lacks the required columns.
        """
        return parse_glucose_csv(self.read_text())


def parse_glucose_csv(text: str) -> list[GlucoseReading]:
    """Parse glucose monitor CSV text into deduplicated mmol/L readings.

    The first line is a preamble, the second the comma-delimited header.
    Rows without a usable timestamp or value are skipped. When two rows
    share a timestamp the earlier one wins.

    Args:
        text: Complete file contents.

    Returns:
        Readings in file order of their first occurrence.

    Raises:
        MissingColumns: If the header row is absent or incomplete.
    """
    df = read_csv_text(text, skiprows=1)
    columns = GlucoseColumns.from_header(list(df.columns))
    logger.debug("Glucose columns resolved: %s", columns)

    raw_values = columns.raw_values(df)
    numbers = pd.to_numeric(raw_values, errors="coerce")

    readings: dict[datetime, GlucoseReading] = {}
    skipped = 0
    duplicates = 0
    for row_no, (raw_ts, raw_value, number) in enumerate(
        zip(columns.timestamps(df), raw_values, numbers), start=1
    ):
        ts = _parse_row_timestamp(raw_ts, row_no)
        value = float(number)
        if ts is None:
            skipped += 1
            continue
        if not math.isfinite(value):
            logger.debug("Row %d skipped: no glucose value (%r)", row_no, raw_value)
            skipped += 1
            continue
        if ts in readings:
            duplicates += 1
            continue
        if columns.unit is GlucoseUnit.MG_DL:
            value = value * MG_DL_TO_MMOL_L
        readings[ts] = GlucoseReading(timestamp=ts, mmol_l=value)

    logger.info(
        "Glucose CSV: %d readings (%s), %d rows skipped, %d duplicates dropped",
        len(readings),
        columns.unit.value,
        skipped,
        duplicates,
    )
    return list(readings.values())


def _parse_row_timestamp(raw: str, row_no: int) -> datetime | None:
    """Timestamp de la fila; None si esta vacio o no se puede interpretar."""
    if not raw:
        return None
    try:
        return parse_device_timestamp(raw)
    except MalformedTimestamp as exc:
        logger.debug("Row %d skipped: %s", row_no, exc)
        return None
