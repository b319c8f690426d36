"""Union temporal de lecturas de glucosa y notas (outer join por timestamp)."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

import pandas as pd

from glucose_notes.model import Annotation, GlucoseReading, JoinedRecord

logger = logging.getLogger(__name__)

FRAME_COLUMNS = ["datetime", "glucose_mmol_l", "note", "details"]


def join_by_timestamp(
    readings: Sequence[GlucoseReading],
    annotations: Sequence[Annotation],
) -> list[JoinedRecord]:
    """Full outer join on exact timestamp equality.

    Every reading and every annotation timestamp gets exactly one record.
    Repeated reading timestamps keep the first reading; repeated annotation
    timestamps keep the last annotation, attached to the reading when there
    is one.

    Args:
        readings: Glucose readings, any order.
        annotations: Annotations, any order.

    Returns:
        Records sorted ascending by timestamp.
    """
    slots: dict[datetime, JoinedRecord] = {}
    for reading in readings:
        if reading.timestamp in slots:
            continue
        slots[reading.timestamp] = JoinedRecord(
            timestamp=reading.timestamp,
            mmol_l=reading.mmol_l,
        )

    overwritten = 0
    for ann in annotations:
        existing = slots.get(ann.timestamp)
        if existing is not None and existing.has_annotation:
            overwritten += 1
        slots[ann.timestamp] = JoinedRecord(
            timestamp=existing.timestamp if existing else ann.timestamp,
            mmol_l=existing.mmol_l if existing else None,
            note=ann.note or None,
            details=ann.details or None,
        )

    if overwritten:
        logger.warning(
            "%d annotations replaced by a later one with the same timestamp",
            overwritten,
        )
    out = sorted(slots.values(), key=lambda r: r.timestamp)
    logger.info(
        "Joined %d readings and %d annotations into %d records",
        len(readings),
        len(annotations),
        len(out),
    )
    return out


def records_to_frame(records: Sequence[JoinedRecord]) -> pd.DataFrame:
    """Convert joined records to a DataFrame (one row per timestamp)."""
    rows = [
        {
            "datetime": r.timestamp,
            "glucose_mmol_l": r.mmol_l,
            "note": r.note,
            "details": r.details,
        }
        for r in records
    ]
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def glucose_points(records: Sequence[JoinedRecord]) -> list[tuple[datetime, float]]:
    """Time/value series for the plotted glucose line."""
    return [(r.timestamp, r.mmol_l) for r in records if r.mmol_l is not None]


def annotation_markers(records: Sequence[JoinedRecord]) -> list[tuple[datetime, str]]:
    """Time/label series for annotation markers on the chart."""
    return [(r.timestamp, r.note or "Note") for r in records if r.has_annotation]


def format_notes(record: JoinedRecord) -> str:
    """Notes text for export: ``note:details``, either one alone, or empty."""
    if record.note and record.details:
        return f"{record.note}:{record.details}"
    return record.note or record.details or ""
