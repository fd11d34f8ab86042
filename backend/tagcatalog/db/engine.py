from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

SQLITE_BUSY_TIMEOUT_MS = 5_000


def sqlite_busy_timeout_ms() -> int:
    try:
        value = int((os.environ.get("SQLITE_BUSY_TIMEOUT_MS") or str(SQLITE_BUSY_TIMEOUT_MS)).strip() or SQLITE_BUSY_TIMEOUT_MS)
    except ValueError:
        value = int(SQLITE_BUSY_TIMEOUT_MS)
    return max(100, min(int(value), 5 * 60_000))


def apply_sqlite_pragmas(dbapi_connection: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        # Association rows rely on ON DELETE CASCADE from both parents.
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.execute("PRAGMA journal_mode = WAL")
        cursor.fetchone()
        cursor.execute("PRAGMA case_sensitive_like = OFF")
        cursor.execute(f"PRAGMA busy_timeout = {sqlite_busy_timeout_ms()}")
    finally:
        cursor.close()


def sqlite_file_path(database_url: str) -> Path | None:
    url = make_url(database_url)
    if (url.get_backend_name() or "").lower() != "sqlite":
        return None
    db = str(url.database or "").strip()
    if not db or db == ":memory:":
        return None
    return Path(db).expanduser()


def create_engine(database_url: str) -> AsyncEngine:
    kwargs: dict[str, Any] = {}
    is_sqlite = database_url.lower().startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"timeout": float(sqlite_busy_timeout_ms()) / 1000.0}
        db_path = sqlite_file_path(database_url)
        if db_path is not None:
            db_path.resolve().parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(database_url, **kwargs)

    if is_sqlite:
        def _on_connect(dbapi_connection: Any, _record: Any) -> None:
            apply_sqlite_pragmas(dbapi_connection)
            # The driver only opens transactions before DML; emit BEGIN ourselves
            # so multi-statement reads share one snapshot.
            dbapi_connection.isolation_level = None

        def _on_begin(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN")

        event.listen(engine.sync_engine, "connect", _on_connect)
        event.listen(engine.sync_engine, "begin", _on_begin)

    return engine
