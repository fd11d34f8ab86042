from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from tagcatalog.catalog.errors import Conflict, Inconsistent, InvalidInput, RecordNotFound, StoreUnavailable
from tagcatalog.core.errors import ErrorCode, api_error_from_catalog_error, error_body
from tagcatalog.main import create_app


def test_error_body_shape() -> None:
    body = error_body(code=ErrorCode.BAD_REQUEST, message="nope", request_id="req_123", details={"a": 1})
    assert body == {"ok": False, "code": "BAD_REQUEST", "message": "nope", "request_id": "req_123", "details": {"a": 1}}


def test_error_body_default_message() -> None:
    body = error_body(code=ErrorCode.NOT_FOUND, message="  ", request_id="req_1")
    assert body["message"] == "Not found"
    assert body["details"] == {}


def test_catalog_errors_map_to_api_errors() -> None:
    err = api_error_from_catalog_error(InvalidInput("page", "must be a positive integer", value=0))
    assert (err.code, err.status_code, err.details) == (ErrorCode.BAD_REQUEST, 400, {"param": "page", "value": 0})

    err = api_error_from_catalog_error(InvalidInput("tag_ids", "at least one"))
    assert err.details == {"param": "tag_ids"}

    err = api_error_from_catalog_error(RecordNotFound("tag", 7))
    assert (err.code, err.status_code) == (ErrorCode.NOT_FOUND, 404)
    assert err.message == "tag not found: 7"

    err = api_error_from_catalog_error(Conflict("taken", field="name"))
    assert (err.code, err.status_code, err.details) == (ErrorCode.CONFLICT, 409, {"field": "name"})

    err = api_error_from_catalog_error(StoreUnavailable("find_images_by_id", "OperationalError"))
    assert (err.code, err.status_code) == (ErrorCode.STORE_UNAVAILABLE, 503)
    assert err.details == {"operation": "find_images_by_id"}
    assert "OperationalError" not in err.message

    err = api_error_from_catalog_error(Inconsistent("missing", image_ids=[3, 4]))
    assert (err.code, err.status_code, err.details) == (ErrorCode.INCONSISTENT, 500, {"image_ids": [3, 4]})


def test_store_failure_returns_503_envelope(tmp_path: Path, monkeypatch) -> None:
    # no schema: every catalog query fails at the store
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///" + (tmp_path / "no_schema.db").as_posix())

    app = create_app()
    with TestClient(app) as client:
        resp = client.get("/images", params={"tags": 1}, headers={"X-Request-Id": "req_test"})
        assert resp.status_code == 503
        body = resp.json()
        assert body["ok"] is False
        assert body["code"] == "STORE_UNAVAILABLE"
        assert body["request_id"] == "req_test"
        assert resp.headers["X-Request-Id"] == "req_test"
        assert body["details"] == {"operation": "find_image_ids_with_all_tags"}


def test_unhandled_exception_returns_json_with_request_id(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///" + (tmp_path / "unhandled.db").as_posix())

    app = create_app()

    @app.get("/boom")
    async def _boom() -> None:
        raise RuntimeError("boom")

    with TestClient(app, raise_server_exceptions=False) as client:
        resp = client.get("/boom", headers={"X-Request-Id": "req_test"})
        assert resp.status_code == 500
        body = resp.json()
        assert body["ok"] is False
        assert body["code"] == "INTERNAL_ERROR"
        assert body["request_id"] == "req_test"
        assert body["details"] == {"error_type": "RuntimeError"}
