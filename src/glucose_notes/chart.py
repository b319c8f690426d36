"""Grafico de glucosa con marcas de notas y lineas de umbral."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import matplotlib.dates as mdates
from matplotlib.figure import Figure

from glucose_notes.consolidate import annotation_markers, glucose_points
from glucose_notes.model import JoinedRecord
from glucose_notes.storage import ThresholdConfig
from glucose_notes.timestamps import LOCAL_TZ

logger = logging.getLogger(__name__)

LINE_COLOR = "#4a90e2"
MARKER_COLOR = "#f68410"


def render_chart(
    records: Sequence[JoinedRecord],
    thresholds: ThresholdConfig,
    out_path: Path,
    title: str = "Glucose Level Chart",
) -> Path:
    """Draw the glucose line, annotation markers and threshold lines to a PNG.

    Markers sit on the glucose value when the annotated instant has a
    reading, otherwise at the bottom of the plot.

    Args:
        records: Joined records sorted by timestamp.
        thresholds: Levels drawn as dashed horizontal lines.
        out_path: Image path; parent directories are created.
        title: Figure title.

    Returns:
        The written path.

    Raises:
        ValueError: If there is nothing to plot.
    """
    points = glucose_points(records)
    markers = annotation_markers(records)
    if not points and not markers:
        raise ValueError("No data to plot")

    values_at = {ts: value for ts, value in points}
    all_values = [v for _, v in points] + [v for _, v, _ in thresholds.lines()]
    bottom = min(all_values) * 0.9

    fig = Figure(figsize=(14, 7))
    ax = fig.subplots()
    if points:
        ax.plot(
            [ts for ts, _ in points],
            [v for _, v in points],
            color=LINE_COLOR,
            linewidth=2,
            label="Glucose (mmol/L)",
        )

    for label, value, color in thresholds.lines():
        ax.axhline(y=value, color=color, linestyle="--", linewidth=1)
        ax.annotate(
            f"{label} {value:.1f}",
            xy=(1.0, value),
            xycoords=("axes fraction", "data"),
            xytext=(4, 0),
            textcoords="offset points",
            va="center",
            color=color,
            fontsize=8,
        )

    for ts, text in markers:
        y = values_at.get(ts, bottom)
        ax.plot([ts], [y], marker="^", color=MARKER_COLOR, markersize=9)
        ax.annotate(
            text,
            xy=(ts, y),
            xytext=(0, -16),
            textcoords="offset points",
            ha="center",
            color=MARKER_COLOR,
            fontsize=8,
        )

    ax.set_ylim(bottom=bottom)
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%d/%m %H:%M", tz=LOCAL_TZ))
    ax.set_title(title, fontweight="bold")
    ax.set_ylabel("Glucose (mmol/L)")
    ax.set_xlabel("Time")
    ax.grid(True, alpha=0.2)
    fig.autofmt_xdate()
    fig.tight_layout()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=100)
    logger.info(
        "Chart written: %s (%d points, %d markers)", out_path, len(points), len(markers)
    )
    return out_path
