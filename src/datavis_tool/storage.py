"""Persistencia SQLite para configuracion e historial de importaciones."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from datavis_tool.ingestion import ImportResult
from datavis_tool.model import ChartType

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS import_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    source TEXT NOT NULL,
    kind TEXT NOT NULL,
    samples_count INTEGER NOT NULL
);
"""


@dataclass(frozen=True)
class AppConfig:
    """Configuracion persistida de la app."""

    api_url: str = ""
    import_dir: str = ""
    chart_type: ChartType = ChartType.LINE
    request_timeout: float | None = None


@dataclass(frozen=True)
class ImportRun:
    """One recorded successful import."""

    id: int
    created_at: str
    source: str
    kind: str
    samples_count: int


class SQLiteStore:
    """Repositorio SQLite para la app."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    def load_config(self) -> AppConfig:
        """Devuelve configuracion guardada o defaults."""
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}
        return AppConfig(
            api_url=values.get("api_url", ""),
            import_dir=values.get("import_dir", ""),
            chart_type=_parse_chart_type(values.get("chart_type", "")),
            request_timeout=_parse_timeout(values.get("request_timeout", "")),
        )

    def save_config(self, config: AppConfig) -> None:
        """Guarda la configuracion en tabla key/value."""
        payload = {
            "api_url": config.api_url,
            "import_dir": config.import_dir,
            "chart_type": config.chart_type.value,
            "request_timeout": (
                "" if config.request_timeout is None else str(config.request_timeout)
            ),
        }
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )
            conn.commit()

    def record_import(self, result: ImportResult) -> int:
        """Registra una importacion exitosa. Devuelve su id."""
        created_at = datetime.now().isoformat(timespec="seconds")
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO import_runs(created_at, source, kind, samples_count)
                VALUES (?, ?, ?, ?)
                """,
                (created_at, result.source, result.kind.value, result.count),
            )
            conn.commit()
            return int(cur.lastrowid)

    def recent_imports(self, limit: int = 10) -> list[ImportRun]:
        """Ultimas importaciones, la mas reciente primero."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, created_at, source, kind, samples_count
                FROM import_runs
                ORDER BY id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [ImportRun(**dict(row)) for row in rows]


def _parse_chart_type(raw: str) -> ChartType:
    try:
        return ChartType(raw)
    except ValueError:
        return ChartType.LINE


def _parse_timeout(raw: str) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None
