"""CLI para importar muestras y mostrar estadísticas y geometría del gráfico."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path

from dateutil import tz

from datavis_tool.analysis import aggregate, daily_summary, filter_range
from datavis_tool.charts import ChartPoint, PieSlice, build_geometry
from datavis_tool.errors import IngestionError
from datavis_tool.ingestion import IngestionGateway, kind_for_path
from datavis_tool.model import ChartType, DateRange, Sample
from datavis_tool.series import SeriesStore
from datavis_tool.sources.base import parse_timestamp
from datavis_tool.storage import AppConfig, SQLiteStore

_OPEN_START = datetime.min.replace(tzinfo=tz.UTC)
_OPEN_END = datetime.max.replace(tzinfo=tz.UTC)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Importa muestras (JSON/CSV/API) y muestra estadísticas."
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--file", help="Archivo local JSON o CSV a importar.")
    source.add_argument("--url", help="URL de la API (JSON) a importar.")
    parser.add_argument(
        "--kind",
        default=None,
        help="Tipo declarado del archivo (json, csv o MIME). Default: por extensión.",
    )
    parser.add_argument("--start", help="Inicio del filtro (ISO-8601 con zona).")
    parser.add_argument("--end", help="Fin del filtro (ISO-8601 con zona).")
    parser.add_argument(
        "--chart",
        choices=[c.value for c in ChartType],
        default=None,
        help="Tipo de gráfico (default: el guardado en la configuracion).",
    )
    parser.add_argument(
        "--daily", action="store_true", help="Muestra el resumen diario."
    )
    parser.add_argument(
        "--db",
        default=str(Path.cwd() / "datavis_tool.sqlite3"),
        help="Base SQLite de configuracion (default: ./datavis_tool.sqlite3).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log detallado.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success, 1 on import or argument errors).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = SQLiteStore(Path(ns.db).expanduser())
    config = settings.load_config()
    chart_type = ChartType(ns.chart) if ns.chart else config.chart_type

    store = SeriesStore.seeded()
    gateway = IngestionGateway(store, request_timeout=config.request_timeout)
    try:
        if ns.file:
            kind = ns.kind or kind_for_path(ns.file)
            result = gateway.import_local(ns.file, kind)
        elif ns.url:
            result = gateway.import_remote_sync(ns.url)
            config = AppConfig(
                api_url=result.source,
                import_dir=config.import_dir,
                chart_type=config.chart_type,
                request_timeout=config.request_timeout,
            )
        else:
            result = None
    except IngestionError as exc:
        print(f"ERROR ({type(exc).__name__}): {exc}")
        return 1
    finally:
        gateway.shutdown()

    if result is not None:
        settings.record_import(result)
        settings.save_config(config)
        print(f"OK: {result.count} muestras importadas desde {result.source}")

    samples: list[Sample] = list(store.samples)
    try:
        date_range = _date_range(ns.start, ns.end)
    except ValueError as exc:
        print(f"ERROR: {exc}")
        return 1
    if date_range is not None:
        samples = filter_range(samples, date_range)

    stats = aggregate(samples)
    print(f"Count: {stats.count}")
    print(f"Min: {stats.min:.2f}")
    print(f"Max: {stats.max:.2f}")
    print(f"Average: {stats.average:.2f}")

    print(f"Chart: {chart_type.label}")
    for item in build_geometry(chart_type, samples):
        print(f"  {_format_item(item)}")

    if ns.daily:
        print(daily_summary(samples).to_string(index=False))
    return 0


def _date_range(start: str | None, end: str | None) -> DateRange | None:
    if start is None and end is None:
        return None
    # Un extremo ausente queda abierto, aun con la serie vacía.
    lo = parse_timestamp(start) if start else _OPEN_START
    hi = parse_timestamp(end) if end else _OPEN_END
    return DateRange(start=lo, end=hi)


def _format_item(item: ChartPoint | PieSlice) -> str:
    if isinstance(item, PieSlice):
        return (
            f"#{item.index} {item.value:g}: {item.start:.1f}° -> {item.end:.1f}° "
            f"({item.color})"
        )
    return f"{item.timestamp.isoformat()} {item.value:g}"
