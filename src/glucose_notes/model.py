"""Modelos tipados para lecturas de glucosa, notas y registros unidos."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class GlucoseReading:
    """One glucose measurement, always in mmol/L."""

    timestamp: datetime
    mmol_l: float


@dataclass(frozen=True)
class Annotation:
    """Free-text note/details pair attached to one timestamp."""

    timestamp: datetime
    note: str = ""
    details: str = ""


@dataclass(frozen=True)
class JoinedRecord:
    """Merged per-timestamp view of a reading and an annotation."""

    timestamp: datetime
    mmol_l: float | None = None
    note: str | None = None
    details: str | None = None

    @property
    def has_glucose(self) -> bool:
        return self.mmol_l is not None

    @property
    def has_annotation(self) -> bool:
        return bool(self.note) or bool(self.details)
