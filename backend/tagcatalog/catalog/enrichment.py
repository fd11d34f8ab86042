from __future__ import annotations

from collections.abc import Iterable, Sequence

from tagcatalog.catalog.errors import Inconsistent
from tagcatalog.catalog.types import CatalogReader, ImageTagRow, TagRecord


def group_tags_by_image(
    page_ids: Sequence[int],
    rows: Iterable[ImageTagRow],
) -> dict[int, tuple[TagRecord, ...]]:
    """Group join rows into ``{image_id: tags}`` for exactly the ids in ``page_ids``.

    Every page id gets an entry, empty when it has no rows. Tags are sorted by
    name (then id) and de-duplicated by id. A row for an image outside the
    page means the join returned something it was not asked for, which is
    raised as :class:`Inconsistent` instead of being dropped.
    """
    found: dict[int, dict[int, TagRecord]] = {int(i): {} for i in page_ids}

    stray: set[int] = set()
    for row in rows:
        image_id = int(row.image_id)
        bucket = found.get(image_id)
        if bucket is None:
            stray.add(image_id)
            continue
        bucket.setdefault(int(row.tag_id), TagRecord(id=int(row.tag_id), name=str(row.tag_name)))

    if stray:
        raise Inconsistent("tag join returned images outside the page", image_ids=sorted(stray))

    return {
        image_id: tuple(sorted(tags.values(), key=lambda t: (t.name, t.id)))
        for image_id, tags in found.items()
    }


async def fetch_tags_for_page(reader: CatalogReader, page_ids: Sequence[int]) -> dict[int, tuple[TagRecord, ...]]:
    ids = [int(i) for i in page_ids]
    if not ids:
        return {}
    rows = await reader.find_tags_for_images(ids)
    return group_tags_by_image(ids, rows)
