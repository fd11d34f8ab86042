from __future__ import annotations

import time
from collections.abc import Iterable

from tagcatalog.catalog.assembler import assemble
from tagcatalog.catalog.enrichment import fetch_tags_for_page
from tagcatalog.catalog.errors import Inconsistent, InvalidInput, StoreUnavailable
from tagcatalog.catalog.filters import validate_tag_ids
from tagcatalog.catalog.pagination import DEFAULT_PAGE_NUMBER, DEFAULT_PAGE_SIZE, paginate, validate_page_params
from tagcatalog.catalog.types import CatalogReader, PaginatedResult, SnapshotSource, TaggedImage
from tagcatalog.core.logging import get_logger
from tagcatalog.core.metrics import observe_image_query

log = get_logger(__name__)


async def find_candidate_ids(reader: CatalogReader, tag_ids: list[int]) -> list[int]:
    if not tag_ids:
        return [int(i) for i in await reader.find_untagged_image_ids()]
    return [int(i) for i in await reader.find_image_ids_with_all_tags(tag_ids)]


async def get_paginated_tagged_images_with_tags(
    store: SnapshotSource,
    tag_ids: Iterable[int] | None,
    page: int = DEFAULT_PAGE_NUMBER,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PaginatedResult[TaggedImage]:
    """Return one page of images carrying every tag in ``tag_ids``, each with its full tag list.

    An empty ``tag_ids`` selects the images that have no tags at all. The
    candidate ids, the page records and the page tags are all read inside one
    snapshot so ``total`` and ``data`` describe the same state of the store.
    """
    started = time.monotonic()
    mode = "untagged"
    try:
        page_i, page_size_i = validate_page_params(page, page_size)
        ids = validate_tag_ids(tag_ids)
        mode = "tagged" if ids else "untagged"

        async with store.snapshot() as reader:
            candidates = await find_candidate_ids(reader, ids)
            window = paginate(candidates, page_i, page_size_i)
            images = await reader.find_images_by_id(window.items) if window.items else []
            tags_by_image = await fetch_tags_for_page(reader, window.items)

        result = assemble(window, images, tags_by_image)
    except InvalidInput as exc:
        observe_image_query(mode=mode, result="invalid_input", duration_s=time.monotonic() - started)
        log.debug("image_query_rejected param=%s reason=%s", exc.param, exc.message)
        raise
    except StoreUnavailable as exc:
        observe_image_query(mode=mode, result="store_unavailable", duration_s=time.monotonic() - started)
        log.warning("image_query_store_unavailable mode=%s operation=%s", mode, exc.operation)
        raise
    except Inconsistent as exc:
        observe_image_query(mode=mode, result="inconsistent", duration_s=time.monotonic() - started)
        log.error("image_query_inconsistent mode=%s image_ids=%s msg=%s", mode, list(exc.image_ids), exc.message)
        raise

    observe_image_query(mode=mode, result="ok", duration_s=time.monotonic() - started)
    log.debug(
        "image_query mode=%s tag_ids=%s page=%s page_size=%s total=%s returned=%s",
        mode,
        ids,
        result.page,
        result.page_size,
        result.total,
        len(result.data),
    )
    return result
