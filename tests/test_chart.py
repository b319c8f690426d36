from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from glucose_notes.chart import render_chart
from glucose_notes.model import JoinedRecord
from glucose_notes.storage import ThresholdConfig
from glucose_notes.timestamps import LOCAL_TZ


def test_render_chart_writes_png(tmp_path: Path) -> None:
    records = [
        JoinedRecord(datetime(2024, 1, 5, 8, 0, tzinfo=LOCAL_TZ), 5.0, "meal", None),
        JoinedRecord(datetime(2024, 1, 5, 8, 15, tzinfo=LOCAL_TZ), 6.2),
        JoinedRecord(datetime(2024, 1, 5, 8, 20, tzinfo=LOCAL_TZ), None, None, "x"),
    ]
    out = render_chart(records, ThresholdConfig(), tmp_path / "img" / "chart.png")
    assert out.exists()
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_render_chart_annotations_only(tmp_path: Path) -> None:
    records = [JoinedRecord(datetime(2024, 1, 5, 8, 0, tzinfo=LOCAL_TZ), note="a")]
    assert render_chart(records, ThresholdConfig(), tmp_path / "c.png").exists()


def test_render_chart_empty_raises(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="No data"):
        render_chart([], ThresholdConfig(), tmp_path / "c.png")
