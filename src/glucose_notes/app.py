"""App Kivy: seleccion de archivos, grafico, umbrales y exportacion CSV."""

from __future__ import annotations

import logging
import tempfile
import traceback
from datetime import datetime
from pathlib import Path

import pandas as pd

from glucose_notes.chart import render_chart
from glucose_notes.consolidate import records_to_frame
from glucose_notes.csv_writer import DEFAULT_FILENAME, write_joined_csv
from glucose_notes.errors import InvalidThresholdInput
from glucose_notes.model import JoinedRecord
from glucose_notes.pipeline import load_joined
from glucose_notes.storage import (
    THRESHOLD_FIELDS,
    AppConfig,
    SQLiteStore,
    ThresholdConfig,
    parse_threshold_inputs,
)

logger = logging.getLogger(__name__)

THRESHOLD_LABELS = {
    "hypo": "Hipoglucemia",
    "target": "Objetivo",
    "medium": "Medio",
    "hyper": "Hiperglucemia",
}


def run_app() -> int:
    """Lanza la app Kivy."""
    from kivy.app import App
    from kivy.core.window import Window
    from kivy.resources import resource_find
    from kivy.uix.boxlayout import BoxLayout
    from kivy.uix.button import Button
    from kivy.uix.filechooser import FileChooserListView
    from kivy.uix.gridlayout import GridLayout
    from kivy.uix.image import Image
    from kivy.uix.label import Label
    from kivy.uix.popup import Popup
    from kivy.uix.tabbedpanel import TabbedPanel, TabbedPanelItem
    from kivy.uix.textinput import TextInput

    class GlucoseNotesApp(App):
        """Main Kivy app."""

        def __init__(self, **kwargs: object) -> None:
            super().__init__(**kwargs)
            self.store = SQLiteStore(Path.cwd() / "glucose_notes.sqlite3")
            self.app_config = self.store.load_config()
            self.thresholds = self.store.load_thresholds()
            self.records: list[JoinedRecord] = []
            self.chart_path = Path(tempfile.gettempdir()) / "glucose_notes_chart.png"
            self.file_inputs: dict[str, TextInput] = {}
            self.preview: TextInput | None = None
            self.chart: Image | None = None
            self.status: Label | None = None
            self._preview_font = resource_find("data/fonts/RobotoMono-Regular.ttf")

        def build(self) -> BoxLayout:
            Window.bind(on_key_down=self._on_key_down)

            root = BoxLayout(orientation="vertical", spacing=8, padding=10)
            root.add_widget(
                Label(
                    text="Glucose Notes: elegir archivos, Procesar y Exportar.",
                    size_hint_y=None,
                    height=36,
                )
            )
            root.add_widget(self._make_file_row("CSV glucosa", "glucose_file"))
            root.add_widget(self._make_file_row("CSV notas", "notes_file"))

            actions = BoxLayout(
                orientation="horizontal",
                spacing=8,
                size_hint_y=None,
                height=40,
            )
            levels_btn = Button(text="Umbrales")
            process_btn = Button(text="Procesar")
            export_btn = Button(text="Exportar CSV")
            exit_btn = Button(text="Salir")
            levels_btn.bind(on_press=self._open_levels_popup)
            process_btn.bind(on_press=self._on_process)
            export_btn.bind(on_press=self._on_export)
            exit_btn.bind(on_press=lambda *_args: self.stop())
            actions.add_widget(levels_btn)
            actions.add_widget(process_btn)
            actions.add_widget(export_btn)
            actions.add_widget(exit_btn)
            root.add_widget(actions)

            self.status = Label(text="Sin procesar", size_hint_y=None, height=30)
            root.add_widget(self.status)

            panel = TabbedPanel(do_default_tab=False)
            chart_tab = TabbedPanelItem(text="Grafico")
            self.chart = Image(allow_stretch=True, keep_ratio=True)
            chart_tab.add_widget(self.chart)
            panel.add_widget(chart_tab)

            data_tab = TabbedPanelItem(text="Datos")
            self.preview = TextInput(
                readonly=True,
                text="",
                multiline=True,
                do_wrap=False,
            )
            if self._preview_font:
                self.preview.font_name = self._preview_font
            data_tab.add_widget(self.preview)
            panel.add_widget(data_tab)
            root.add_widget(panel)
            return root

        def _make_file_row(self, label: str, key: str) -> BoxLayout:
            row = BoxLayout(orientation="horizontal", size_hint_y=None, height=36)
            row.add_widget(Label(text=label, size_hint_x=0.2))
            inp = TextInput(text=getattr(self.app_config, key), multiline=False)
            row.add_widget(inp)
            browse_btn = Button(text="Browse", size_hint_x=0.15)
            browse_btn.bind(on_press=lambda *_args: self._open_file_chooser(inp))
            row.add_widget(browse_btn)
            self.file_inputs[key] = inp
            return row

        def _on_key_down(
            self,
            _window: object,
            keycode: int,
            _scancode: int,
            _text: str,
            _modifiers: list[str],
        ) -> bool:
            # Esc: salir de fullscreen o cerrar app.
            if keycode != 27:
                return False
            if Window.fullscreen:
                Window.fullscreen = False
            else:
                self.stop()
            return True

        def _open_file_chooser(self, target_input: TextInput) -> None:
            current = Path(target_input.text).expanduser()
            start_dir = (
                str(current.parent)
                if target_input.text.strip() and current.parent.exists()
                else str(Path.home())
            )
            chooser = FileChooserListView(path=start_dir, filters=["*.csv"])
            buttons = BoxLayout(orientation="horizontal", size_hint_y=None, height=40)
            cancel_btn = Button(text="Cancelar")
            use_btn = Button(text="Usar archivo")
            buttons.add_widget(cancel_btn)
            buttons.add_widget(use_btn)

            content = BoxLayout(orientation="vertical")
            content.add_widget(chooser)
            content.add_widget(buttons)
            popup = Popup(
                title="Seleccionar archivo",
                content=content,
                size_hint=(0.9, 0.9),
            )
            cancel_btn.bind(on_press=lambda *_args: popup.dismiss())

            def apply_selection(*_: object) -> None:
                # Sin seleccion se conserva el archivo anterior.
                if chooser.selection:
                    target_input.text = chooser.selection[0]
                popup.dismiss()

            use_btn.bind(on_press=apply_selection)
            chooser.bind(on_submit=lambda *_args: apply_selection())
            popup.open()

        def _open_levels_popup(self, _: object) -> None:
            inputs: dict[str, TextInput] = {}
            grid = GridLayout(cols=2, spacing=6, padding=8)
            for field in THRESHOLD_FIELDS:
                grid.add_widget(Label(text=f"{THRESHOLD_LABELS[field]} (mmol/L)"))
                inp = TextInput(
                    text=f"{getattr(self.thresholds, field):.1f}",
                    multiline=False,
                    input_filter="float",
                )
                inputs[field] = inp
                grid.add_widget(inp)

            footer = BoxLayout(orientation="horizontal", size_hint_y=None, height=42)
            cancel_btn = Button(text="Cancelar")
            reset_btn = Button(text="Restablecer")
            save_btn = Button(text="Guardar")
            footer.add_widget(cancel_btn)
            footer.add_widget(reset_btn)
            footer.add_widget(save_btn)

            content = BoxLayout(orientation="vertical")
            content.add_widget(grid)
            content.add_widget(footer)
            popup = Popup(title="Umbrales", content=content, size_hint=(0.6, 0.6))
            cancel_btn.bind(on_press=lambda *_args: popup.dismiss())
            reset_btn.bind(on_press=lambda *_args: self._reset_levels(popup))
            save_btn.bind(on_press=lambda *_args: self._save_levels(popup, inputs))
            popup.open()

        def _save_levels(self, popup: Popup, inputs: dict[str, TextInput]) -> None:
            try:
                config = parse_threshold_inputs(
                    {field: inp.text for field, inp in inputs.items()}
                )
            except InvalidThresholdInput as exc:
                # Se mantiene la configuracion anterior.
                self._set_status(f"Umbrales invalidos: {exc}")
                return
            self.store.save_thresholds(config)
            self._apply_levels(config, "Umbrales guardados.")
            popup.dismiss()

        def _reset_levels(self, popup: Popup) -> None:
            self._apply_levels(self.store.reset_thresholds(), "Umbrales por defecto.")
            popup.dismiss()

        def _apply_levels(self, config: ThresholdConfig, message: str) -> None:
            self.thresholds = config
            if self.records:
                self._refresh_chart()
            self._set_status(message)

        def _on_process(self, _: object) -> None:
            config = AppConfig(
                glucose_file=self.file_inputs["glucose_file"].text.strip(),
                notes_file=self.file_inputs["notes_file"].text.strip(),
                export_dir=self.app_config.export_dir,
            )
            if not config.glucose_file or not config.notes_file:
                self._set_status("Elegir ambos archivos antes de procesar.")
                return
            try:
                result = load_joined(
                    Path(config.glucose_file).expanduser(),
                    Path(config.notes_file).expanduser(),
                )
            except Exception as exc:
                # Los datos ya procesados no se tocan.
                self._show_error("procesar", exc)
                return

            self.app_config = config
            self.store.save_config(config)
            self.records = result.records
            self._refresh_preview()
            self._refresh_chart()
            self._set_status(
                f"OK. {result.glucose_count} lecturas, "
                f"{result.annotation_count} notas, {len(self.records)} filas."
            )

        def _on_export(self, _: object) -> None:
            if not self.records:
                self._set_status("No hay datos para exportar.")
                return
            out_dir = (
                Path(self.app_config.export_dir).expanduser()
                if self.app_config.export_dir
                else Path.cwd() / "salidas"
            )
            stamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            out_path = out_dir / f"{Path(DEFAULT_FILENAME).stem}_{stamp}.csv"
            try:
                write_joined_csv(self.records, out_path)
            except Exception as exc:
                self._show_error("exportar", exc)
                return
            self._set_status(f"CSV generado: {out_path}")

        def _refresh_chart(self) -> None:
            if self.chart is None:
                return
            try:
                render_chart(self.records, self.thresholds, self.chart_path)
            except ValueError as exc:
                self._set_status(f"Sin grafico: {exc}")
                return
            self.chart.source = str(self.chart_path)
            self.chart.reload()

        def _refresh_preview(self) -> None:
            if self.preview is None:
                return
            frame = records_to_frame(self.records)
            if frame.empty:
                self.preview.text = ""
                return
            display_df = _display_frame(frame.head(200))
            self.preview.text = display_df.to_string(index=False, max_colwidth=40)

        def _set_status(self, text: str) -> None:
            if self.status is not None:
                self.status.text = text

        def _show_error(self, action: str, exc: Exception) -> None:
            logger.error("Error al %s: %s", action, exc)
            error_type = type(exc).__name__
            self._set_status(f"Error al {action} ({error_type}): {exc}")
            if self.preview is not None:
                self.preview.text = traceback.format_exc()

    GlucoseNotesApp().run()
    return 0


def _display_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Prepare a string-renderable DataFrame for aligned preview."""
    if df.empty:
        return df.copy()
    out = df.copy()
    for col in out.columns:
        out[col] = out[col].map(_format_preview_value)
    return out


def _format_preview_value(value: object) -> str:
    """Format preview values without NaN/scientific notation."""
    if value is None or pd.isna(value):
        return ""
    if isinstance(value, datetime):
        dt_value = value.replace(tzinfo=None) if value.tzinfo is not None else value
        return dt_value.strftime("%d/%m/%Y %H:%M")
    if isinstance(value, float):
        return f"{value:.1f}"
    return str(value)
