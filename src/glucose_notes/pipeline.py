"""Pipeline completo: parseo concurrente de ambos CSV y union por timestamp."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from glucose_notes.consolidate import join_by_timestamp
from glucose_notes.model import Annotation, GlucoseReading, JoinedRecord
from glucose_notes.sources.base import SourcePaths
from glucose_notes.sources.libre import LibreSource, parse_glucose_csv
from glucose_notes.sources.notes import NotesSource, parse_notes_csv

logger = logging.getLogger(__name__)

A = TypeVar("A")
B = TypeVar("B")


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one successful parse + join."""

    readings: list[GlucoseReading]
    annotations: list[Annotation]
    records: list[JoinedRecord]

    @property
    def glucose_count(self) -> int:
        return sum(1 for r in self.records if r.mmol_l is not None)

    @property
    def annotation_count(self) -> int:
        return sum(1 for r in self.records if r.has_annotation)


def load_joined(glucose_path: Path, notes_path: Path) -> PipelineResult:
    """Parse both exports concurrently and join them.

    Args:
        glucose_path: Glucose monitor CSV export.
        notes_path: Annotation CSV export.

    Returns:
        The parsed inputs and the joined records.

    Raises:
        FileReadFailure: If either file cannot be read.
        MissingColumns: If either header is incomplete.
    """
    glucose = LibreSource(SourcePaths(file=glucose_path))
    notes = NotesSource(SourcePaths(file=notes_path))
    readings, annotations = _run_both(glucose.load_readings, notes.load_annotations)
    return _join(readings, annotations)


def join_texts(glucose_text: str, notes_text: str) -> PipelineResult:
    """In-memory variant of :func:`load_joined`."""
    readings, annotations = _run_both(
        lambda: parse_glucose_csv(glucose_text),
        lambda: parse_notes_csv(notes_text),
    )
    return _join(readings, annotations)


def _run_both(first: Callable[[], A], second: Callable[[], B]) -> tuple[A, B]:
    """Ejecuta ambos parseos en paralelo y espera a los dos.

    Si alguno falla, la excepcion se propaga y el otro resultado se descarta.
    """
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="parse") as pool:
        first_future = pool.submit(first)
        second_future = pool.submit(second)
        return first_future.result(), second_future.result()


def _join(
    readings: list[GlucoseReading], annotations: list[Annotation]
) -> PipelineResult:
    records = join_by_timestamp(readings, annotations)
    return PipelineResult(readings=readings, annotations=annotations, records=records)
