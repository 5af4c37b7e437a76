from __future__ import annotations

from pathlib import Path

from datavis_tool.ingestion import ContentKind, ImportResult
from datavis_tool.model import ChartType
from datavis_tool.storage import AppConfig, SQLiteStore


def test_store_config_defaults(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.load_config() == AppConfig()


def test_store_config_round_trip(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "nested" / "app.sqlite3")
    config = AppConfig(
        api_url="https://example.com/data.json",
        import_dir="/data/in",
        chart_type=ChartType.PIE,
        request_timeout=7.5,
    )
    store.save_config(config)
    assert store.load_config() == config

    store.save_config(AppConfig(api_url="https://other.test"))
    loaded = store.load_config()
    assert loaded.api_url == "https://other.test"
    assert loaded.chart_type is ChartType.LINE
    assert loaded.request_timeout is None


def test_store_config_tolerates_bad_values(tmp_path: Path) -> None:
    db = tmp_path / "app.sqlite3"
    store = SQLiteStore(db)
    with store._connect() as conn:
        conn.executemany(
            "INSERT INTO app_config(key, value) VALUES(?, ?)",
            [("chart_type", "radar"), ("request_timeout", "soon")],
        )
        conn.commit()
    loaded = store.load_config()
    assert loaded.chart_type is ChartType.LINE
    assert loaded.request_timeout is None


def test_record_and_list_imports(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    first = store.record_import(ImportResult("a.csv", ContentKind.CSV, 3))
    second = store.record_import(
        ImportResult("https://api.test/d", ContentKind.JSON, 10)
    )
    assert second > first

    runs = store.recent_imports()
    assert [r.source for r in runs] == ["https://api.test/d", "a.csv"]
    assert runs[0].kind == "json"
    assert runs[0].samples_count == 10
    assert len(store.recent_imports(limit=1)) == 1
