from __future__ import annotations

import threading
from pathlib import Path

import pytest

from glucose_notes import pipeline
from glucose_notes.errors import FileReadFailure, MissingColumns
from glucose_notes.pipeline import join_texts, load_joined

GLUCOSE_TEXT = "\n".join(
    [
        "Glucose Data,Generated on,06-01-2024 10:00",
        "Device,Serial Number,Device Timestamp,Record Type,"
        "Historic Glucose mg/dL,Scan Glucose mg/dL",
        "Libre,ABC,05-01-2024 08:00,0,90,",
        "Libre,ABC,05-01-2024 08:15,0,180,",
        "Libre,ABC,05-01-2024 08:15,1,,200",
    ]
)
NOTES_TEXT = "\n".join(
    [
        "timestamp;note;details",
        "05-01-2024 08:15;meal;pasta",
        "05-01-2024 09:00;walk;",
    ]
)


def test_join_texts_end_to_end() -> None:
    result = join_texts(GLUCOSE_TEXT, NOTES_TEXT)
    assert len(result.readings) == 2
    assert len(result.annotations) == 2
    assert len(result.records) == 3
    assert result.glucose_count == 2
    assert result.annotation_count == 2
    second = result.records[1]
    assert second.mmol_l == pytest.approx(9.99)
    assert (second.note, second.details) == ("meal", "pasta")
    assert result.records[2].mmol_l is None


def test_load_joined_from_files(tmp_path: Path) -> None:
    g = tmp_path / "glucose.csv"
    n = tmp_path / "notes.csv"
    g.write_text(GLUCOSE_TEXT, encoding="utf-8")
    n.write_text(NOTES_TEXT, encoding="utf-8")
    result = load_joined(g, n)
    assert [r.note for r in result.records] == [None, "meal", "walk"]


def test_load_joined_propagates_missing_file(tmp_path: Path) -> None:
    n = tmp_path / "notes.csv"
    n.write_text(NOTES_TEXT, encoding="utf-8")
    with pytest.raises(FileReadFailure):
        load_joined(tmp_path / "missing.csv", n)


def test_join_texts_propagates_header_error() -> None:
    with pytest.raises(MissingColumns):
        join_texts(GLUCOSE_TEXT, "time;text\n")


def test_parses_run_in_worker_threads(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[str] = []

    def _glucose(text: str) -> list[object]:
        seen.append(threading.current_thread().name)
        return []

    def _notes(text: str) -> list[object]:
        seen.append(threading.current_thread().name)
        return []

    monkeypatch.setattr(pipeline, "parse_glucose_csv", _glucose)
    monkeypatch.setattr(pipeline, "parse_notes_csv", _notes)
    result = join_texts("", "")
    assert result.records == []
    assert len(seen) == 2
    assert all(name.startswith("parse") for name in seen)
