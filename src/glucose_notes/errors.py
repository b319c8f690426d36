"""Errores del pipeline de glucosa + notas."""

from __future__ import annotations


class GlucoseNotesError(Exception):
    """Base class for every error raised by glucose_notes."""


class MalformedTimestamp(GlucoseNotesError, ValueError):
    """A date/time string could not be normalized."""

    def __init__(self, raw: object, reason: str | None = None) -> None:
        self.raw = raw
        msg = f"Malformed timestamp: {raw!r}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class MissingColumns(GlucoseNotesError, ValueError):
    """A required header is not present in a CSV file."""

    def __init__(self, source: str, missing: list[str]) -> None:
        self.source = source
        self.missing = list(missing)
        super().__init__(
            f"Invalid CSV format for {source}. Missing columns: "
            + ", ".join(self.missing)
        )


class FileReadFailure(GlucoseNotesError, OSError):
    """The underlying file could not be read."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        super().__init__(f"Error reading file {path}: {reason}")


class InvalidThresholdInput(GlucoseNotesError, ValueError):
    """A threshold value is not a positive number."""

    def __init__(self, field: str, value: object) -> None:
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid value for {field}: {value!r} (expected a positive number)"
        )
