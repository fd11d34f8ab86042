from __future__ import annotations

from collections.abc import Iterable, Mapping

from tagcatalog.catalog.errors import Inconsistent
from tagcatalog.catalog.types import ImageRecord, PageSlice, PaginatedResult, TaggedImage, TagRecord


def assemble(
    window: PageSlice[int],
    images: Iterable[ImageRecord],
    tags_by_image: Mapping[int, tuple[TagRecord, ...]],
) -> PaginatedResult[TaggedImage]:
    images_by_id = {int(img.id): img for img in images}

    missing_images = [i for i in window.items if i not in images_by_id]
    if missing_images:
        raise Inconsistent("page references images that were not fetched", image_ids=missing_images)
    missing_tags = [i for i in window.items if i not in tags_by_image]
    if missing_tags:
        raise Inconsistent("tag join omitted images in the page", image_ids=missing_tags)

    data = [TaggedImage(image=images_by_id[i], tags=tuple(tags_by_image[i])) for i in window.items]
    return PaginatedResult(data=data, total=window.total, page=window.page, page_size=window.page_size)
