from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import cast

import pytest
from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from glucose_notes.excel_writer import ExcelLayout, _format_sheet, write_joined_xlsx
from glucose_notes.model import JoinedRecord
from glucose_notes.timestamps import LOCAL_TZ


def test_write_joined_xlsx_happy_path_and_formatting(tmp_path: Path) -> None:
    """Una fila por timestamp: Día, Fecha / Hora, Glucosa, Notas."""
    records = [
        JoinedRecord(datetime(2025, 12, 15, 8, 30, tzinfo=LOCAL_TZ), 5.8, "meal", "x"),
        JoinedRecord(datetime(2025, 12, 16, 9, 45, tzinfo=LOCAL_TZ), None, None, "y"),
    ]
    out = tmp_path / "nested" / "out.xlsx"
    write_joined_xlsx(records, out, ExcelLayout())

    wb = load_workbook(out)
    ws = cast(Worksheet, wb[ExcelLayout().sheet_name])

    headers = [cell.value for cell in ws[1]]
    assert headers == ["Día", "Fecha / Hora", "Glucosa (mmol/L)", "Notas"]
    assert ws.cell(row=2, column=1).value == "lun"
    assert ws.cell(row=2, column=2).value == datetime(2025, 12, 15, 8, 30)
    assert ws.cell(row=2, column=3).value == 5.8
    assert ws.cell(row=2, column=4).value == "meal:x"
    assert ws.cell(row=3, column=3).value is None
    assert ws.cell(row=3, column=4).value == "y"

    assert ws.column_dimensions["A"].width == 6
    assert ws.cell(row=2, column=3).number_format == "0.0"
    assert ws.cell(row=1, column=1).font.bold is True


def test_write_joined_xlsx_refuses_empty(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="No data"):
        write_joined_xlsx([], tmp_path / "out.xlsx", ExcelLayout())


def test_format_sheet_handles_missing_headers() -> None:
    wb = Workbook()
    ws = cast(Worksheet, wb.active)
    ws.append(["Solo"])
    ws.append([1])

    _format_sheet(ws)

    assert ws.cell(row=1, column=1).font.bold is True
    assert ws.cell(row=2, column=1).alignment.horizontal == "center"
