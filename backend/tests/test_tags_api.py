from __future__ import annotations

import asyncio
from pathlib import Path

from fastapi.testclient import TestClient

from tagcatalog.main import create_app


def _make_client_app(tmp_path: Path, monkeypatch, name: str):  # type: ignore[no-untyped-def]
    db_path = tmp_path / name
    db_url = "sqlite+aiosqlite:///" + db_path.as_posix()

    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("DATABASE_URL", db_url)

    app = create_app()

    async def _migrate() -> None:
        await app.state.store.create_schema()
        await app.state.store.engine.dispose()

    asyncio.run(_migrate())
    return app


def _create(client: TestClient, name: str) -> int:
    resp = client.post("/tags", json={"name": name})
    assert resp.status_code == 201
    return int(resp.json()["item"]["id"])


def test_tags_create_get_and_list(tmp_path: Path, monkeypatch) -> None:
    app = _make_client_app(tmp_path, monkeypatch, "tags_basic.db")

    with TestClient(app) as client:
        cat = _create(client, "cat")
        car = _create(client, "car")
        _create(client, "dog")

        again = client.post("/tags", json={"name": "  cat "})
        assert again.status_code == 201
        assert again.json()["item"] == {"id": cat, "name": "cat"}

        got = client.get(f"/tags/{car}", headers={"X-Request-Id": "req_test"})
        assert got.status_code == 200
        assert got.json()["item"] == {"id": car, "name": "car"}
        assert got.json()["request_id"] == "req_test"

        page1 = client.get("/tags", params={"page_size": 2})
        assert page1.status_code == 200
        body1 = page1.json()
        assert [t["name"] for t in body1["data"]] == ["car", "cat"]
        assert body1["total"] == 3

        page2 = client.get("/tags", params={"page_size": 2, "page": 2})
        assert [t["name"] for t in page2.json()["data"]] == ["dog"]

        search = client.get("/tags", params={"q": "ca"})
        assert [t["name"] for t in search.json()["data"]] == ["car", "cat"]
        assert search.json()["total"] == 2

        missing = client.get("/tags/9999")
        assert missing.status_code == 404
        assert missing.json()["code"] == "NOT_FOUND"


def test_tags_invalid_input_returns_400(tmp_path: Path, monkeypatch) -> None:
    app = _make_client_app(tmp_path, monkeypatch, "tags_invalid.db")

    with TestClient(app) as client:
        for resp in (
            client.post("/tags", json={"name": ""}),
            client.post("/tags", json={"name": "   "}),
            client.post("/tags", json={}),
            client.get("/tags", params={"page": 0}),
            client.get("/tags", params={"page_size": 1000}),
            client.get("/tags/0"),
        ):
            assert resp.status_code == 400
            body = resp.json()
            assert body["ok"] is False
            assert body["code"] == "BAD_REQUEST"


def test_tags_rename(tmp_path: Path, monkeypatch) -> None:
    app = _make_client_app(tmp_path, monkeypatch, "tags_rename.db")

    with TestClient(app) as client:
        cute = _create(client, "cute")
        _create(client, "fat")

        renamed = client.post(f"/tags/{cute}/rename", json={"name": "adorable"})
        assert renamed.status_code == 200
        assert renamed.json()["item"] == {"id": cute, "name": "adorable"}

        clash = client.post(f"/tags/{cute}/rename", json={"name": "fat"})
        assert clash.status_code == 409
        assert clash.json()["code"] == "CONFLICT"
        assert clash.json()["details"] == {"field": "name"}

        missing = client.post("/tags/9999/rename", json={"name": "x"})
        assert missing.status_code == 404


def test_tags_replace_merge_and_delete(tmp_path: Path, monkeypatch) -> None:
    app = _make_client_app(tmp_path, monkeypatch, "tags_replace.db")

    with TestClient(app) as client:
        cute = _create(client, "cute")
        fat = _create(client, "fat")
        grumpy = _create(client, "grumpy")

        img1 = client.post("/images", json={"src": "https://example.test/1.jpg", "width": 10, "height": 10}).json()["item"]["id"]
        img2 = client.post("/images", json={"src": "https://example.test/2.jpg", "width": 10, "height": 10}).json()["item"]["id"]
        assert client.put(f"/images/{img1}/tags", json={"tag_ids": [cute, fat]}).status_code == 200
        assert client.put(f"/images/{img2}/tags", json={"tag_ids": [fat, grumpy]}).status_code == 200

        replaced = client.post(f"/tags/{fat}/replace", json={"with_tag_id": grumpy})
        assert replaced.status_code == 200
        assert replaced.json()["item"] == {"from_tag_id": fat, "to_tag_id": grumpy, "images_retagged": 2}

        by_fat = client.get("/images", params={"tags": fat})
        assert by_fat.json()["total"] == 0
        by_grumpy = client.get("/images", params={"tags": grumpy})
        assert [i["id"] for i in by_grumpy.json()["data"]] == [img1, img2]

        same = client.post(f"/tags/{cute}/replace", json={"with_tag_id": cute})
        assert same.status_code == 400

        bad_body = client.post(f"/tags/{cute}/replace", json={"with_tag_id": "x"})
        assert bad_body.status_code == 400

        merged = client.post(f"/tags/{grumpy}/merge", json={"with_tag_id": cute})
        assert merged.status_code == 200
        assert merged.json()["item"] == {"deleted_tag_id": grumpy, "kept_tag_id": cute, "images_retagged": 2}
        assert client.get(f"/tags/{grumpy}").status_code == 404

        img1_body = client.get(f"/images/{img1}").json()["item"]
        assert [t["name"] for t in img1_body["tags"]] == ["cute"]

        deleted = client.delete(f"/tags/{cute}")
        assert deleted.status_code == 200
        assert deleted.json()["item"] == {"id": cute, "name": "cute"}

        untagged = client.get("/images")
        assert [i["id"] for i in untagged.json()["data"]] == [img1, img2]

        again = client.delete(f"/tags/{cute}")
        assert again.status_code == 404


def test_tags_list_includes_newest_sample_images(tmp_path: Path, monkeypatch) -> None:
    app = _make_client_app(tmp_path, monkeypatch, "tags_samples.db")

    with TestClient(app) as client:
        cute = _create(client, "cute")
        fat = _create(client, "fat")
        _create(client, "lonely")

        ids = []
        for n in range(1, 5):
            resp = client.post("/images", json={"src": f"https://example.test/{n}.jpg", "width": 10, "height": 10})
            ids.append(resp.json()["item"]["id"])
        for image_id in ids:
            assert client.put(f"/images/{image_id}/tags", json={"tag_ids": [cute]}).status_code == 200
        assert client.put(f"/images/{ids[0]}/tags", json={"tag_ids": [cute, fat]}).status_code == 200

        plain = client.get("/tags")
        assert all("sample_images" not in t for t in plain.json()["data"])

        sampled = client.get("/tags", params={"include_sample_images": "true", "sample_size": 2})
        assert sampled.status_code == 200
        by_name = {t["name"]: t for t in sampled.json()["data"]}
        assert [i["id"] for i in by_name["cute"]["sample_images"]] == [ids[3], ids[2]]
        assert [i["id"] for i in by_name["fat"]["sample_images"]] == [ids[0]]
        assert by_name["lonely"]["sample_images"] == []
        assert by_name["cute"]["sample_images"][0] == {
            "id": ids[3],
            "src": "https://example.test/4.jpg",
            "alt": "",
            "width": 10,
            "height": 10,
        }

        default_size = client.get("/tags", params={"include_sample_images": "true", "q": "cute"})
        assert [i["id"] for i in default_size.json()["data"][0]["sample_images"]] == list(reversed(ids))

        for bad in (0, 51):
            resp = client.get("/tags", params={"include_sample_images": "true", "sample_size": bad})
            assert resp.status_code == 400
            assert resp.json()["details"]["param"] == "sample_size"
