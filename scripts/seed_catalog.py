from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

import httpx

REPO_ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = REPO_ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from tagcatalog.catalog.errors import Conflict, InvalidInput  # noqa: E402
from tagcatalog.core.config import load_settings  # noqa: E402
from tagcatalog.core.logging import configure_logging, get_logger  # noqa: E402
from tagcatalog.db.images_write import create_image  # noqa: E402
from tagcatalog.db.store import CatalogStore  # noqa: E402
from tagcatalog.db.tags_write import create_tag  # noqa: E402

log = get_logger("seed_catalog")

CAT_API_URL = "https://api.thecatapi.com/v1/images/search"
SEED_TAGS: tuple[str, ...] = ("cute", "fat", "grumpy")


async def fetch_cat_images(client: httpx.AsyncClient, *, batches: int, per_batch: int = 10) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for i in range(max(0, int(batches))):
        log.info("fetching batch=%s of=%s", i + 1, batches)
        resp = await client.get(CAT_API_URL, params={"limit": per_batch})
        resp.raise_for_status()
        for item in resp.json():
            if not isinstance(item, dict):
                continue
            out.append({"src": item.get("url"), "width": item.get("width"), "height": item.get("height")})
    return out


async def seed(store: CatalogStore, *, images: list[dict[str, Any]], tags: tuple[str, ...]) -> tuple[int, int]:
    await store.create_schema()

    created_images = 0
    for item in images:
        async def _op(session):  # type: ignore[no-untyped-def]
            return await create_image(session, src=item["src"], width=item["width"], height=item["height"])

        try:
            await store.write(_op, operation="seed_image")
            created_images += 1
        except (Conflict, InvalidInput) as exc:
            log.info("image_skipped src=%s reason=%s", item.get("src"), exc)

    for name in tags:
        async def _tag_op(session, name=name):  # type: ignore[no-untyped-def]
            return await create_tag(session, name=name)

        await store.write(_tag_op, operation="seed_tag")

    return created_images, len(tags)


async def main_async(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the catalog with cat images and a few starter tags.")
    parser.add_argument("--database-url", type=str, default="")
    parser.add_argument("--batches", type=int, default=3)
    parser.add_argument("--offline", action="store_true", help="only create the schema and starter tags")
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings.log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    images: list[dict[str, Any]] = []
    if not args.offline:
        async with httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0)) as client:
            images = await fetch_cat_images(client, batches=args.batches)

    async with CatalogStore(args.database_url or settings.database_url) as store:
        created_images, created_tags = await seed(store, images=images, tags=SEED_TAGS)

    log.info("seeded images=%s tags=%s", created_images, created_tags)
    return 0


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(main_async(argv))


if __name__ == "__main__":
    raise SystemExit(main())
