"""App Kivy: dashboard de muestras con gráficos, filtro e importación."""

from __future__ import annotations

import logging
import traceback
from collections.abc import Sequence
from concurrent.futures import Future
from pathlib import Path

from datavis_tool.charts import (
    PALETTE_RGB,
    ChartPoint,
    PieSlice,
    time_ticks,
    value_ticks,
)
from datavis_tool.errors import IngestionError
from datavis_tool.ingestion import ImportResult, IngestionGateway
from datavis_tool.model import ChartType, DateRange, DerivedStats, Sample
from datavis_tool.series import SeriesStore
from datavis_tool.session import DashboardSession
from datavis_tool.sources.base import parse_timestamp
from datavis_tool.storage import AppConfig, SQLiteStore

logger = logging.getLogger(__name__)

AXIS_MARGIN = 48


def run_app() -> int:
    """Lanza la app Kivy."""
    from kivy.app import App
    from kivy.clock import Clock
    from kivy.core.text import Label as CoreLabel
    from kivy.core.window import Window
    from kivy.graphics import Color, Ellipse, Line, Rectangle
    from kivy.uix.boxlayout import BoxLayout
    from kivy.uix.button import Button
    from kivy.uix.checkbox import CheckBox
    from kivy.uix.filechooser import FileChooserListView
    from kivy.uix.label import Label
    from kivy.uix.popup import Popup
    from kivy.uix.scrollview import ScrollView
    from kivy.uix.textinput import TextInput
    from kivy.uix.togglebutton import ToggleButton
    from kivy.uix.widget import Widget

    def schedule_on_main(fn: object) -> None:
        Clock.schedule_once(lambda _dt: fn(), 0)  # type: ignore[operator]

    class ChartWidget(Widget):
        """Draws a line, bar or pie chart for a list of samples."""

        def __init__(self, **kwargs: object) -> None:
            super().__init__(**kwargs)
            self.chart_type = ChartType.LINE
            self.geometry: Sequence[ChartPoint | PieSlice] = []
            self.samples: Sequence[Sample] = []
            self.bind(pos=self._redraw, size=self._redraw)

        def show(
            self,
            chart_type: ChartType,
            samples: Sequence[Sample],
            geometry: Sequence[ChartPoint | PieSlice],
        ) -> None:
            self.chart_type = chart_type
            self.samples = samples
            self.geometry = geometry
            self._redraw()

        def _redraw(self, *_args: object) -> None:
            self.canvas.clear()
            if not self.geometry:
                return
            if self.chart_type is ChartType.PIE:
                self._draw_pie()
            else:
                self._draw_xy()

        def _draw_pie(self) -> None:
            size = min(self.width, self.height)
            x = self.center_x - size / 2
            y = self.center_y - size / 2
            with self.canvas:
                for item in self.geometry:
                    if not isinstance(item, PieSlice) or item.sweep <= 0:
                        continue
                    Color(*PALETTE_RGB[item.color])
                    # Kivy mide los ángulos desde las 12 en sentido horario.
                    Ellipse(
                        pos=(x, y),
                        size=(size, size),
                        angle_start=item.start,
                        angle_end=item.end,
                    )

        def _draw_xy(self) -> None:
            xs = [t.timestamp() for t in time_ticks(self.samples)]
            ys = value_ticks(self.samples)
            x0, x1 = xs[0], xs[-1]
            y0, y1 = ys[0], ys[-1]
            left = self.x + AXIS_MARGIN
            bottom = self.y + AXIS_MARGIN / 2
            width = max(self.width - AXIS_MARGIN * 1.5, 1)
            height = max(self.height - AXIS_MARGIN, 1)

            def to_px(ts: float, value: float) -> tuple[float, float]:
                px = left + (ts - x0) / ((x1 - x0) or 1) * width
                py = bottom + (value - y0) / ((y1 - y0) or 1) * height
                return px, py

            points = [p for p in self.geometry if isinstance(p, ChartPoint)]
            with self.canvas:
                Color(0.6, 0.6, 0.6, 1)
                for tick in ys:
                    _, py = to_px(x0, tick)
                    Line(points=[left, py, left + width, py], width=1)
                    self._draw_text(f"{tick:g}", self.x + 4, py - 8)
                for tick in xs:
                    px, _ = to_px(tick, y0)
                    Line(points=[px, bottom, px, bottom - 4], width=1)

                Color(*PALETTE_RGB["blue"])
                coords = [to_px(p.timestamp.timestamp(), p.value) for p in points]
                if self.chart_type is ChartType.LINE:
                    flat = [c for xy in coords for c in xy]
                    if len(coords) > 1:
                        Line(points=flat, width=1.5)
                    for px, py in coords:
                        Ellipse(pos=(px - 3, py - 3), size=(6, 6))
                else:
                    bar_w = max(width / max(len(coords), 1) * 0.6, 2)
                    _, base = to_px(x0, 0.0)
                    for px, py in coords:
                        Rectangle(
                            pos=(px - bar_w / 2, min(base, py)),
                            size=(bar_w, abs(py - base)),
                        )

        def _draw_text(self, text: str, x: float, y: float) -> None:
            label = CoreLabel(text=text, font_size=11)
            label.refresh()
            Color(0.3, 0.3, 0.3, 1)
            Rectangle(texture=label.texture, pos=(x, y), size=label.texture.size)

    class DataVisApp(App):
        """Main Kivy app."""

        def __init__(self, **kwargs: object) -> None:
            super().__init__(**kwargs)
            self.settings_store = SQLiteStore(Path.cwd() / "datavis_tool.sqlite3")
            self.app_config = self.settings_store.load_config()
            store = SeriesStore.seeded(dispatch=schedule_on_main)
            gateway = IngestionGateway(
                store, request_timeout=self.app_config.request_timeout
            )
            self.session = DashboardSession(store, gateway)
            self.session.chart_type = self.app_config.chart_type
            self.chart: ChartWidget | None = None
            self.filtered_chart: ChartWidget | None = None
            self.stats_label: Label | None = None
            self.status: Label | None = None
            self.filter_check: CheckBox | None = None
            self.start_input: TextInput | None = None
            self.end_input: TextInput | None = None

        def build(self) -> ScrollView:
            Window.bind(on_key_down=self._on_key_down)
            self.title = "Data Visualization"

            root = BoxLayout(orientation="vertical", spacing=8, padding=10)

            actions = BoxLayout(
                orientation="horizontal", spacing=8, size_hint_y=None, height=40
            )
            for chart_type in ChartType:
                btn = ToggleButton(
                    text=chart_type.label,
                    group="chart_type",
                    state="down" if chart_type is self.session.chart_type else "normal",
                    allow_no_selection=False,
                )
                btn.bind(on_press=lambda _btn, ct=chart_type: self._on_chart_type(ct))
                actions.add_widget(btn)
            import_file_btn = Button(text="Importar archivo")
            import_api_btn = Button(text="Importar API")
            import_file_btn.bind(on_press=self._open_file_chooser)
            import_api_btn.bind(on_press=self._open_api_popup)
            actions.add_widget(import_file_btn)
            actions.add_widget(import_api_btn)
            root.add_widget(actions)

            self.status = Label(text="", size_hint_y=None, height=30)
            root.add_widget(self.status)

            self.chart = ChartWidget(size_hint_y=None, height=300)
            root.add_widget(self.chart)

            root.add_widget(self._build_filter_box())

            self.filtered_chart = ChartWidget(size_hint_y=None, height=200)
            root.add_widget(self.filtered_chart)

            self.stats_label = Label(size_hint_y=None, height=90, halign="left")
            root.add_widget(self.stats_label)

            entry = BoxLayout(orientation="horizontal", size_hint_y=None, height=40)
            value_input = TextInput(
                hint_text="Valor", multiline=False, input_filter="float"
            )
            add_btn = Button(text="Agregar", size_hint_x=0.25)
            add_btn.bind(on_press=lambda *_args: self._on_add(value_input))
            entry.add_widget(value_input)
            entry.add_widget(add_btn)
            root.add_widget(entry)

            self.session.store.subscribe(lambda _version: self._refresh())
            self._refresh()

            scroll = ScrollView()
            root.size_hint_y = None
            root.bind(minimum_height=root.setter("height"))
            scroll.add_widget(root)
            return scroll

        def _build_filter_box(self) -> BoxLayout:
            box = BoxLayout(
                orientation="vertical", size_hint_y=None, height=120, spacing=4
            )
            box.add_widget(
                Label(text="Filtrar por rango de fechas", size_hint_y=None, height=24)
            )

            row = BoxLayout(orientation="horizontal", size_hint_y=None, height=36)
            self.filter_check = CheckBox(
                active=self.session.filter_active, size_hint_x=0.1
            )
            self.filter_check.bind(
                active=lambda _chk, value: self._on_filter_toggle(value)
            )
            row.add_widget(self.filter_check)
            self.start_input = TextInput(multiline=False)
            self.end_input = TextInput(multiline=False)
            self.start_input.bind(on_text_validate=lambda *_args: self._on_range_edit())
            self.end_input.bind(on_text_validate=lambda *_args: self._on_range_edit())
            row.add_widget(self.start_input)
            row.add_widget(self.end_input)
            box.add_widget(row)

            reset_btn = Button(text="Rango completo", size_hint_y=None, height=36)
            reset_btn.bind(on_press=lambda *_args: self._on_reset_filter())
            box.add_widget(reset_btn)
            self._sync_range_inputs()
            return box

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

        def _on_chart_type(self, chart_type: ChartType) -> None:
            self.session.chart_type = chart_type
            self._save_config(chart_type=chart_type)
            self._refresh()

        def _on_add(self, value_input: TextInput) -> None:
            if self.session.add_value(value_input.text) is not None:
                value_input.text = ""

        def _on_filter_toggle(self, active: bool) -> None:
            self.session.filter_active = active
            self._refresh()

        def _on_range_edit(self) -> None:
            if self.start_input is None or self.end_input is None:
                return
            try:
                self.session.date_range = DateRange(
                    start=parse_timestamp(self.start_input.text),
                    end=parse_timestamp(self.end_input.text),
                )
            except ValueError as exc:
                self._set_status(f"Fecha invalida: {exc}")
                return
            self._refresh()

        def _on_reset_filter(self) -> None:
            self.session.reset_filter_to_full_range()
            if self.filter_check is not None:
                self.filter_check.active = True
            self._sync_range_inputs()
            self._refresh()

        def _sync_range_inputs(self) -> None:
            if self.start_input is None or self.end_input is None:
                return
            self.start_input.text = self.session.date_range.start.isoformat()
            self.end_input.text = self.session.date_range.end.isoformat()

        def _open_file_chooser(self, _: object) -> None:
            start_dir = (
                str(Path(self.app_config.import_dir).expanduser())
                if self.app_config.import_dir.strip()
                else str(Path.home())
            )
            chooser = FileChooserListView(path=start_dir, filters=["*.json", "*.csv"])
            buttons = BoxLayout(orientation="horizontal", size_hint_y=None, height=40)
            cancel_btn = Button(text="Cancelar")
            use_btn = Button(text="Importar")
            buttons.add_widget(cancel_btn)
            buttons.add_widget(use_btn)

            content = BoxLayout(orientation="vertical")
            content.add_widget(chooser)
            content.add_widget(buttons)
            popup = Popup(
                title="Importar archivo", content=content, size_hint=(0.9, 0.9)
            )
            cancel_btn.bind(on_press=lambda *_args: popup.dismiss())

            def apply_selection(*_: object) -> None:
                if not chooser.selection:
                    return
                popup.dismiss()
                self._import_file(Path(chooser.selection[0]))

            use_btn.bind(on_press=apply_selection)
            chooser.bind(on_submit=lambda *_args: apply_selection())
            popup.open()

        def _open_api_popup(self, _: object) -> None:
            content = BoxLayout(orientation="vertical", spacing=8, padding=8)
            url_input = TextInput(
                text=self.app_config.api_url,
                hint_text="https://example.com/data.json",
                multiline=False,
                size_hint_y=None,
                height=40,
            )
            content.add_widget(url_input)
            buttons = BoxLayout(orientation="horizontal", size_hint_y=None, height=40)
            cancel_btn = Button(text="Cancelar")
            fetch_btn = Button(text="Descargar")
            buttons.add_widget(cancel_btn)
            buttons.add_widget(fetch_btn)
            content.add_widget(buttons)
            popup = Popup(title="URL de la API", content=content, size_hint=(0.9, 0.4))
            cancel_btn.bind(on_press=lambda *_args: popup.dismiss())

            def fetch(*_: object) -> None:
                popup.dismiss()
                self._import_url(url_input.text)

            fetch_btn.bind(on_press=fetch)
            popup.open()

        def _import_file(self, path: Path) -> None:
            try:
                result = self.session.import_file(path)
            except IngestionError as exc:
                self._show_error("importar archivo", exc)
                return
            self._save_config(import_dir=str(path.parent))
            self._on_imported(result)

        def _import_url(self, url: str) -> None:
            try:
                future = self.session.import_url(url)
            except IngestionError as exc:
                self._show_error("importar API", exc)
                return
            self._set_status(f"Descargando {url} ...")
            self._save_config(api_url=url.strip())
            future.add_done_callback(
                lambda f: schedule_on_main(lambda: self._on_fetch_done(f))
            )

        def _on_fetch_done(self, future: Future[ImportResult]) -> None:
            exc = future.exception()
            if exc is not None:
                self._show_error("importar API", exc)
                return
            self._on_imported(future.result())

        def _on_imported(self, result: ImportResult) -> None:
            self.settings_store.record_import(result)
            self._set_status(f"OK. {result.count} muestras desde {result.source}")

        def _save_config(self, **changes: object) -> None:
            current = self.app_config
            values: dict[str, object] = {
                "api_url": current.api_url,
                "import_dir": current.import_dir,
                "chart_type": current.chart_type,
                "request_timeout": current.request_timeout,
            }
            values.update(changes)
            self.app_config = AppConfig(**values)  # type: ignore[arg-type]
            self.settings_store.save_config(self.app_config)

        def _refresh(self) -> None:
            session = self.session
            if self.chart is not None:
                self.chart.show(
                    session.chart_type, session.displayed_samples(), session.geometry()
                )
            if self.filtered_chart is not None:
                self.filtered_chart.show(
                    session.chart_type,
                    session.filtered_samples(),
                    session.geometry(filtered=True),
                )
            if self.stats_label is not None:
                self.stats_label.text = _format_stats(session.stats())

        def _set_status(self, text: str) -> None:
            if self.status is not None:
                self.status.text = text

        def _show_error(self, action: str, exc: BaseException) -> None:
            error_type = type(exc).__name__
            logger.debug("".join(traceback.format_exception(exc)))
            self._set_status(f"Error al {action} ({error_type}): {exc}")

        def on_stop(self) -> None:
            self.session.gateway.shutdown()

    DataVisApp().run()
    return 0


def _format_stats(stats: DerivedStats) -> str:
    """Texto del panel de estadísticas."""
    return "\n".join(
        [
            "Data Statistics",
            f"Count: {stats.count}",
            f"Min: {stats.min:.2f}",
            f"Max: {stats.max:.2f}",
            f"Average: {stats.average:.2f}",
        ]
    )
