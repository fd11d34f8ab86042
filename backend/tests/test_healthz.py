from __future__ import annotations

import asyncio
from pathlib import Path

from fastapi.testclient import TestClient

from tagcatalog.db.store import CatalogStore
from tagcatalog.main import create_app


def test_healthz_ok_includes_request_id(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///" + (tmp_path / "healthz.db").as_posix())

    app = create_app()
    with TestClient(app) as client:
        resp = client.get("/healthz")

        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert body["db_ok"] is True
        assert body["request_id"].startswith("req_")
        assert resp.headers["X-Request-Id"] == body["request_id"]


def test_healthz_uses_request_id_header_if_provided(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///" + (tmp_path / "healthz_rid.db").as_posix())

    app = create_app()
    with TestClient(app) as client:
        resp = client.get("/healthz", headers={"X-Request-Id": "req_test"})

        assert resp.status_code == 200
        assert resp.json()["request_id"] == "req_test"
        assert resp.headers["X-Request-Id"] == "req_test"


def test_healthz_reports_store_down_when_closed(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("APP_ENV", "dev")
    store = CatalogStore("sqlite+aiosqlite:///" + (tmp_path / "healthz_closed.db").as_posix())

    app = create_app(store)
    asyncio.run(store.close())

    with TestClient(app) as client:
        resp = client.get("/healthz", headers={"X-Request-Id": "req_test"})

        assert resp.status_code == 503
        body = resp.json()
        assert body["ok"] is False
        assert body["code"] == "STORE_UNAVAILABLE"
        assert body["request_id"] == "req_test"
        assert body["details"] == {"db_ok": False}
