from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

from glucose_notes.csv_writer import (
    DEFAULT_FILENAME,
    parse_exported_csv,
    read_exported_csv,
    records_to_csv,
    write_joined_csv,
)
from glucose_notes.model import JoinedRecord
from glucose_notes.timestamps import LOCAL_TZ

T1 = datetime(2024, 1, 5, 8, 0, tzinfo=LOCAL_TZ)
T2 = datetime(2024, 1, 5, 8, 15, tzinfo=LOCAL_TZ)
T3 = datetime(2024, 1, 5, 9, 0, tzinfo=LOCAL_TZ)


def test_records_to_csv_layout() -> None:
    text = records_to_csv(
        [
            JoinedRecord(T1, 5.5, "meal", "lunch"),
            JoinedRecord(T2, 6.25),
            JoinedRecord(T3, None, None, "walk"),
        ]
    )
    lines = text.splitlines()
    assert lines[0] == "Timestamp,Glucose Rate (mmol/L),Notes"
    assert lines[1] == "05/01/2024 08:00:00,5.5,meal:lunch"
    assert lines[2] == "05/01/2024 08:15:00,6.25,"
    assert lines[3] == "05/01/2024 09:00:00,,walk"


def test_records_to_csv_quotes_notes_with_comma_or_quote() -> None:
    text = records_to_csv(
        [
            JoinedRecord(T1, 5.0, "pasta, salad", None),
            JoinedRecord(T2, 5.0, 'said "ok"', None),
        ]
    )
    lines = text.splitlines()
    assert lines[1].endswith(',"pasta, salad"')
    assert lines[2].endswith(',"said ""ok"""')


def test_round_trip_export() -> None:
    records = [
        JoinedRecord(T1, 9.99, "meal", "pasta, salad"),
        JoinedRecord(T2, 4.2),
        JoinedRecord(T3, None, "walk", None),
    ]
    df = parse_exported_csv(records_to_csv(records))
    assert list(df["datetime"]) == [T1, T2, T3]
    assert df.loc[0, "glucose_mmol_l"] == pytest.approx(9.99)
    assert df.loc[1, "glucose_mmol_l"] == pytest.approx(4.2)
    assert pd.isna(df.loc[2, "glucose_mmol_l"])
    assert list(df["notes"]) == ["meal:pasta, salad", "", "walk"]


def test_parse_exported_csv_rejects_other_files() -> None:
    with pytest.raises(ValueError, match="missing"):
        parse_exported_csv("a,b\n1,2\n")


def test_write_joined_csv_creates_dirs(tmp_path: Path) -> None:
    out = tmp_path / "nested" / DEFAULT_FILENAME
    write_joined_csv([JoinedRecord(T1, 5.0, "meal", None)], out)
    df = read_exported_csv(out)
    assert len(df) == 1
    assert df.loc[0, "notes"] == "meal"


def test_write_joined_csv_refuses_empty(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="No data"):
        write_joined_csv([], tmp_path / "out.csv")
