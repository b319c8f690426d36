"""Persistencia SQLite para configuracion y umbrales de glucosa."""

from __future__ import annotations

import json
import logging
import math
import sqlite3
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from glucose_notes.errors import InvalidThresholdInput

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

THRESHOLDS_KEY = "glucose_levels"
THRESHOLD_FIELDS = ("hypo", "target", "medium", "hyper")


@dataclass(frozen=True)
class ThresholdConfig:
    """Glucose levels (mmol/L) drawn as horizontal lines on the chart."""

    hypo: float = 3.9
    target: float = 5.5
    medium: float = 7.8
    hyper: float = 10.0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)

    def is_ordered(self) -> bool:
        """True when hypo < target < medium < hyper."""
        return self.hypo < self.target < self.medium < self.hyper

    def lines(self) -> list[tuple[str, float, str]]:
        """Chart lines as (label, value, color)."""
        return [
            ("Target", self.target, "#4caf50"),
            ("Hypo", self.hypo, "#f44336"),
            ("Hyper", self.hyper, "#f44336"),
            ("Medium", self.medium, "#ffc300"),
        ]


def parse_threshold_inputs(raw: Mapping[str, object]) -> ThresholdConfig:
    """Validate user-entered thresholds.

    Args:
        raw: Mapping with ``hypo``, ``target``, ``medium`` and ``hyper``;
            values may be numbers or strings.

    Returns:
        Validated configuration.

    Raises:
        InvalidThresholdInput: If a value is missing, non-numeric or <= 0.
    """
    values: dict[str, float] = {}
    for field in THRESHOLD_FIELDS:
        value = raw.get(field)
        try:
            number = float(str(value).strip()) if value is not None else math.nan
        except ValueError as exc:
            raise InvalidThresholdInput(field, value) from exc
        if not math.isfinite(number) or number <= 0:
            raise InvalidThresholdInput(field, value)
        values[field] = number
    config = ThresholdConfig(**values)
    if not config.is_ordered():
        logger.warning("Thresholds are not in increasing order: %s", values)
    return config


@dataclass(frozen=True)
class AppConfig:
    """Configuracion persistida de la app."""

    glucose_file: str
    notes_file: str
    export_dir: str


class SQLiteStore:
    """Repositorio SQLite clave/valor para la app."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    def _get(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM app_config WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return str(row["value"])

    def _put_many(self, items: Mapping[str, str]) -> None:
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                items.items(),
            )
            conn.commit()

    def load_config(self) -> AppConfig:
        """Devuelve configuracion guardada o defaults."""
        defaults = {"glucose_file": "", "notes_file": "", "export_dir": ""}
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT key, value FROM app_config WHERE key IN (?, ?, ?)",
                tuple(defaults),
            ).fetchall()
        values = {row["key"]: row["value"] for row in rows}
        merged = {**defaults, **values}
        return AppConfig(**merged)

    def save_config(self, config: AppConfig) -> None:
        """Guarda la configuracion en tabla key/value."""
        self._put_many(asdict(config))

    def load_thresholds(self) -> ThresholdConfig:
        """Saved thresholds merged over the defaults.

        Unreadable or invalid stored values fall back to the defaults.
        """
        raw = self._get(THRESHOLDS_KEY)
        if raw is None:
            return ThresholdConfig()
        stored = _parse_json_object(raw)
        if stored is None:
            logger.warning("Ignoring unreadable saved thresholds: %r", raw)
            return ThresholdConfig()
        merged = {**ThresholdConfig().as_dict(), **stored}
        try:
            return parse_threshold_inputs(merged)
        except InvalidThresholdInput as exc:
            logger.warning("Ignoring saved thresholds: %s", exc)
            return ThresholdConfig()

    def save_thresholds(self, config: ThresholdConfig) -> None:
        """Persist thresholds; they are used from the next load onwards."""
        self._put_many({THRESHOLDS_KEY: json.dumps(config.as_dict())})

    def reset_thresholds(self) -> ThresholdConfig:
        """Remove saved thresholds and return the defaults."""
        with self._connect() as conn:
            conn.execute("DELETE FROM app_config WHERE key = ?", (THRESHOLDS_KEY,))
            conn.commit()
        return ThresholdConfig()


def _parse_json_object(raw: str) -> dict[str, Any] | None:
    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    return {str(k): v for k, v in parsed.items() if k in THRESHOLD_FIELDS}
