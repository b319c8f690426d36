"""Generacion de Excel formateado con glucosa y notas."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

from glucose_notes.consolidate import format_notes
from glucose_notes.model import JoinedRecord
from glucose_notes.timestamps import LOCAL_TZ

logger = logging.getLogger(__name__)

_DIA_SEMANA: tuple[str, ...] = ("lun", "mar", "mie", "jue", "vie", "sab", "dom")

_WIDTHS: dict[str, int] = {
    "Día": 6,
    "Fecha / Hora": 18,
    "Glucosa (mmol/L)": 16,
    "Notas": 40,
}

_NUMBER_FORMATS: dict[str, str] = {
    "Fecha / Hora": "dd/mm/yyyy hh:mm",
    "Glucosa (mmol/L)": "0.0",
}


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the sheet."""

    sheet_name: str = "Glucosa y notas"


def _excel_frame(records: Sequence[JoinedRecord]) -> pd.DataFrame:
    """Una fila por timestamp, con fecha local sin timezone (Excel no la admite)."""
    rows = []
    for r in records:
        local = r.timestamp.astimezone(LOCAL_TZ) if r.timestamp.tzinfo else r.timestamp
        rows.append(
            {
                "Día": _DIA_SEMANA[local.weekday()],
                "Fecha / Hora": local.replace(tzinfo=None),
                "Glucosa (mmol/L)": r.mmol_l,
                "Notas": format_notes(r),
            }
        )
    return pd.DataFrame(rows, columns=list(_WIDTHS))


def write_joined_xlsx(
    records: Sequence[JoinedRecord], out_path: Path, layout: ExcelLayout
) -> Path:
    """Write a formatted Excel file suitable for printing.

    Args:
        records: Joined records, already sorted.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.

    Raises:
        ValueError: If there are no records to export.
    """
    if not records:
        raise ValueError("No data to export")
    out_path.parent.mkdir(parents=True, exist_ok=True)

    export_df = _excel_frame(records)
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        export_df.to_excel(writer, index=False, sheet_name=layout.sheet_name)
        ws = writer.book[layout.sheet_name]
        _format_sheet(ws)
    logger.info("Excel written: %s (%d rows)", out_path, len(records))
    return out_path


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    """Borde en todas las celdas; las notas quedan alineadas a la izquierda."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center")
    left = Alignment(horizontal="left", vertical="center", wrap_text=True)
    notes_idx = _get_header_col_index(ws).get("Notas")
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = left if cell.column == notes_idx else center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    for header, width in _WIDTHS.items():
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    for row in ws.iter_rows(min_row=2):
        for header, fmt in _NUMBER_FORMATS.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)
