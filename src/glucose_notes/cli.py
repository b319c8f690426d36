"""CLI para unir glucosa (LibreView) + notas y exportar CSV, Excel o grafico."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from pathlib import Path

from glucose_notes.chart import render_chart
from glucose_notes.csv_writer import DEFAULT_FILENAME, write_joined_csv
from glucose_notes.errors import GlucoseNotesError
from glucose_notes.excel_writer import ExcelLayout, write_joined_xlsx
from glucose_notes.pipeline import load_joined
from glucose_notes.storage import (
    THRESHOLD_FIELDS,
    SQLiteStore,
    parse_threshold_inputs,
)

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Une lecturas de glucosa con notas por timestamp."
    )
    parser.add_argument("--glucose", help="CSV exportado del sensor de glucosa.")
    parser.add_argument("--notes", help="CSV de notas (separado por ';').")
    parser.add_argument(
        "--out-dir",
        default=str(Path.cwd() / "salidas"),
        help="Directorio de salida (default: ./salidas).",
    )
    parser.add_argument(
        "--csv",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Exportar CSV (default: si).",
    )
    parser.add_argument("--xlsx", action="store_true", help="Exportar Excel.")
    parser.add_argument("--chart", action="store_true", help="Generar grafico PNG.")
    parser.add_argument(
        "--db",
        default=str(Path.cwd() / "glucose_notes.sqlite3"),
        help="Base SQLite con la configuracion de umbrales.",
    )
    parser.add_argument(
        "--set-thresholds",
        nargs=4,
        metavar=("HYPO", "TARGET", "MEDIUM", "HYPER"),
        help="Guardar umbrales en mmol/L.",
    )
    parser.add_argument(
        "--reset-thresholds",
        action="store_true",
        help="Volver a los umbrales por defecto.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log DEBUG.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success, 1 on invalid input files or settings, 2 on
        incomplete arguments).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return _run(ns)
    except GlucoseNotesError as exc:
        logger.debug("Failed", exc_info=True)
        print(f"Error: {exc}")
        return 1


def _run(ns: argparse.Namespace) -> int:
    store = SQLiteStore(Path(ns.db).expanduser())
    settings_only = False

    if ns.reset_thresholds:
        store.reset_thresholds()
        print("OK: Umbrales restablecidos a los valores por defecto.")
        settings_only = True
    if ns.set_thresholds:
        config = parse_threshold_inputs(dict(zip(THRESHOLD_FIELDS, ns.set_thresholds)))
        store.save_thresholds(config)
        print(f"OK: Umbrales guardados: {config.as_dict()}")
        settings_only = True

    if not ns.glucose or not ns.notes:
        if settings_only:
            return 0
        print("Error: se requieren --glucose y --notes.")
        return 2

    thresholds = store.load_thresholds()
    result = load_joined(
        Path(ns.glucose).expanduser(), Path(ns.notes).expanduser()
    )
    print(f"OK: Lecturas de glucosa: {result.glucose_count}")
    print(f"OK: Notas: {result.annotation_count}")
    if not result.records:
        print("No hay datos para exportar.")
        return 0

    out_dir = Path(ns.out_dir).expanduser().resolve()
    stem = Path(DEFAULT_FILENAME).stem
    if ns.csv:
        out_path = write_joined_csv(result.records, out_dir / DEFAULT_FILENAME)
        print(f"OK: CSV: {out_path}")
    if ns.xlsx:
        out_path = write_joined_xlsx(
            result.records, out_dir / f"{stem}.xlsx", ExcelLayout()
        )
        print(f"OK: Excel: {out_path}")
    if ns.chart:
        out_path = render_chart(result.records, thresholds, out_dir / f"{stem}.png")
        print(f"OK: Grafico: {out_path}")
    return 0
