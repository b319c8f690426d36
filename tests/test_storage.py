from __future__ import annotations

import json
from pathlib import Path

import pytest

from glucose_notes.errors import InvalidThresholdInput
from glucose_notes.storage import (
    THRESHOLDS_KEY,
    AppConfig,
    SQLiteStore,
    ThresholdConfig,
    parse_threshold_inputs,
)


def test_defaults_when_nothing_saved(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.load_thresholds() == ThresholdConfig(3.9, 5.5, 7.8, 10.0)


def test_save_load_and_reset_thresholds(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "nested" / "app.sqlite3")
    config = ThresholdConfig(hypo=4.0, target=6.0, medium=8.0, hyper=11.0)
    store.save_thresholds(config)
    assert SQLiteStore(tmp_path / "nested" / "app.sqlite3").load_thresholds() == config

    assert store.reset_thresholds() == ThresholdConfig()
    assert store.load_thresholds() == ThresholdConfig()


def test_partial_saved_thresholds_merge_over_defaults(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    store._put_many({THRESHOLDS_KEY: json.dumps({"hyper": 12.5})})
    assert store.load_thresholds() == ThresholdConfig(hyper=12.5)


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"hypo": -1}'])
def test_corrupt_saved_thresholds_fall_back_to_defaults(
    tmp_path: Path, raw: str
) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    store._put_many({THRESHOLDS_KEY: raw})
    assert store.load_thresholds() == ThresholdConfig()


def test_parse_threshold_inputs_from_strings() -> None:
    config = parse_threshold_inputs(
        {"hypo": "4", "target": " 5.5 ", "medium": 7.8, "hyper": "10"}
    )
    assert config == ThresholdConfig(4.0, 5.5, 7.8, 10.0)


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("hypo", "abc"),
        ("target", "0"),
        ("medium", -2),
        ("hyper", "nan"),
        ("hypo", None),
    ],
)
def test_parse_threshold_inputs_rejects(field: str, value: object) -> None:
    raw: dict[str, object] = {"hypo": 3.9, "target": 5.5, "medium": 7.8, "hyper": 10}
    raw[field] = value
    with pytest.raises(InvalidThresholdInput, match=field):
        parse_threshold_inputs(raw)


def test_invalid_input_keeps_previous_config(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    saved = ThresholdConfig(hypo=4.2)
    store.save_thresholds(saved)
    with pytest.raises(InvalidThresholdInput):
        store.save_thresholds(
            parse_threshold_inputs(
                {"hypo": "x", "target": 1, "medium": 2, "hyper": 3}
            )
        )
    assert store.load_thresholds() == saved


def test_unordered_thresholds_are_accepted() -> None:
    config = parse_threshold_inputs(
        {"hypo": 10, "target": 5.5, "medium": 7.8, "hyper": 3.9}
    )
    assert not config.is_ordered()
    assert ThresholdConfig().is_ordered()


def test_threshold_lines() -> None:
    labels = [label for label, _, _ in ThresholdConfig().lines()]
    assert labels == ["Target", "Hypo", "Hyper", "Medium"]


def test_store_app_config(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.load_config() == AppConfig("", "", "")
    config = AppConfig(
        glucose_file="/data/libre.csv",
        notes_file="/data/notes.csv",
        export_dir="/data/out",
    )
    store.save_config(config)
    store.save_thresholds(ThresholdConfig())
    assert store.load_config() == config
