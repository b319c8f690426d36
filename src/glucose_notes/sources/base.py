"""Clases base para fuentes de datos CSV."""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from glucose_notes.errors import FileReadFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourcePaths:
    """Container for the exported file of one source."""

    file: Path


class DataSource(ABC):
    """Abstract CSV export source."""

    def __init__(self, paths: SourcePaths) -> None:
        """Create a data source.

        Args:
            paths: Source paths configuration.
        """
        self._paths = paths

    @property
    def path(self) -> Path:
        return self._paths.file

    def validate(self) -> None:
        """Validate that the export file exists.

        Raises:
            FileReadFailure: If the file is missing or is not a regular file.
        """
        if not self._paths.file.is_file():
            raise FileReadFailure(self._paths.file, "file not found")

    def read_text(self) -> str:
        """Read the whole export as text (UTF-8, BOM tolerated)."""
        self.validate()
        try:
            text = self._paths.file.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise FileReadFailure(self._paths.file, str(exc)) from exc
        logger.debug("Read %d characters from %s", len(text), self._paths.file)
        return text

    @abstractmethod
    def load(self) -> list[object]:
        """Parse the export file into typed records."""


def read_csv_text(text: str, **kwargs: Any) -> pd.DataFrame:
    """Read CSV text as strings, with stripped headers and cells.

    Missing trailing cells become ``""``; malformed rows are skipped.
    Text without any header row gives an empty frame with no columns.
    """
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            on_bad_lines="skip",
            **kwargs,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    df = df.fillna("")
    for col in df.columns:
        df[col] = df[col].str.strip()
    df.columns = df.columns.str.strip()
    return df.reset_index(drop=True)
