"""Normalizacion de timestamps ``DD-MM-YYYY hh:mm`` a instantes absolutos."""

from __future__ import annotations

from datetime import datetime, tzinfo

from dateutil import tz

from glucose_notes.errors import MalformedTimestamp

LOCAL_TZ = tz.tzlocal()

DEVICE_FORMAT = "%d-%m-%Y %H:%M"
DEVICE_FORMAT_SECONDS = "%d-%m-%Y %H:%M:%S"
EXPORT_FORMAT = "%d/%m/%Y %H:%M:%S"


def parse_device_timestamp(raw: str, zone: tzinfo | None = None) -> datetime:
    """Parse a ``DD-MM-YYYY hh:mm`` string into an aware datetime.

    Date and time are separated by exactly one space. A trailing ``:ss`` is
    accepted and dropped. Out-of-range calendar fields (day 32, month 13,
    30 February, hour 24) are rejected; nothing rolls over into the next
    month or day.

    Args:
        raw: Timestamp text as found in the CSV cell.
        zone: Timezone of the wall time. Defaults to the local timezone.

    Returns:
        Timezone-aware datetime with seconds set to zero.

    Raises:
        MalformedTimestamp: If the text does not describe a valid date/time.
    """
    if not isinstance(raw, str):
        raise MalformedTimestamp(raw, "not a string")
    text = raw.strip()
    date_part, sep, time_part = text.partition(" ")
    if not sep or any(ch.isspace() for ch in date_part + time_part):
        raise MalformedTimestamp(raw, "expected one space between date and time")
    fmt = DEVICE_FORMAT_SECONDS if time_part.count(":") == 2 else DEVICE_FORMAT
    try:
        dt = datetime.strptime(text, fmt)
    except ValueError as exc:
        raise MalformedTimestamp(raw, str(exc)) from exc
    return dt.replace(second=0, tzinfo=zone or LOCAL_TZ)


def format_export_timestamp(value: datetime) -> str:
    """Render a timestamp as local wall time ``DD/MM/YYYY HH:MM:SS``."""
    if value.tzinfo is not None:
        value = value.astimezone(LOCAL_TZ)
    return value.strftime(EXPORT_FORMAT)


def parse_export_timestamp(raw: str, zone: tzinfo | None = None) -> datetime:
    """Inverse of :func:`format_export_timestamp`."""
    try:
        dt = datetime.strptime(raw.strip(), EXPORT_FORMAT)
    except (AttributeError, ValueError) as exc:
        raise MalformedTimestamp(raw, str(exc)) from exc
    return dt.replace(tzinfo=zone or LOCAL_TZ)
