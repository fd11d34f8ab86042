from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tagcatalog.catalog.errors import Conflict, InvalidInput, RecordNotFound
from tagcatalog.catalog.filters import is_positive_int, validate_tag_ids
from tagcatalog.catalog.types import ImageRecord, TagRecord
from tagcatalog.db import sqlite_utils
from tagcatalog.db.images_get import get_image_by_id
from tagcatalog.db.models.image_tags import ImageTag
from tagcatalog.db.models.images import Image
from tagcatalog.db.models.tags import Tag
from tagcatalog.db.tags_get import get_tags_for_image


async def require_image(session: AsyncSession, *, image_id: object) -> ImageRecord:
    if not is_positive_int(image_id):
        raise InvalidInput("image_id", "must be a positive integer", value=image_id)
    image = await get_image_by_id(session, image_id=int(image_id))  # type: ignore[arg-type]
    if image is None:
        raise RecordNotFound("image", image_id)
    return image


async def create_image(session: AsyncSession, *, src: str, width: int, height: int, alt: str = "") -> ImageRecord:
    src_norm = str(src or "").strip()
    if not src_norm:
        raise InvalidInput("src", "must not be empty", value=src)
    if not is_positive_int(width):
        raise InvalidInput("width", "must be a positive integer", value=width)
    if not is_positive_int(height):
        raise InvalidInput("height", "must be a positive integer", value=height)

    image = Image(src=src_norm, width=int(width), height=int(height), alt=str(alt or ""))
    session.add(image)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise Conflict(f"image src already exists: {src_norm}", field="src") from exc

    return ImageRecord(id=int(image.id), src=image.src, width=image.width, height=image.height, alt=image.alt)


async def delete_image(session: AsyncSession, *, image_id: int) -> ImageRecord:
    image = await require_image(session, image_id=image_id)
    await session.execute(delete(Image).where(Image.id == image.id))
    return image


async def set_image_tags(session: AsyncSession, *, image_id: int, tag_ids: Sequence[int]) -> tuple[TagRecord, ...]:
    """Replace the tag set of one image, touching only the pairs that change."""
    image = await require_image(session, image_id=image_id)
    wanted = validate_tag_ids(tag_ids)

    if wanted:
        existing: set[int] = set()
        for chunk in sqlite_utils.chunks(wanted):
            existing.update((await session.execute(select(Tag.id).where(Tag.id.in_(chunk)))).scalars().all())
        missing = [t for t in wanted if t not in existing]
        if missing:
            raise RecordNotFound("tag", missing[0] if len(missing) == 1 else missing)

    before = set((await session.execute(select(ImageTag.tag_id).where(ImageTag.image_id == image.id))).scalars().all())
    after = set(wanted)
    to_delete = sorted(before - after)
    to_insert = sorted(after - before)

    for chunk in sqlite_utils.chunks(to_delete):
        await session.execute(delete(ImageTag).where(ImageTag.image_id == image.id, ImageTag.tag_id.in_(chunk)))
    # two parameters per row
    for chunk in sqlite_utils.chunks(to_insert, chunk_size=sqlite_utils.SQLITE_IN_CHUNK_SIZE // 2):
        await session.execute(
            sqlite_insert(ImageTag)
            .values([{"image_id": image.id, "tag_id": t} for t in chunk])
            .on_conflict_do_nothing(index_elements=["image_id", "tag_id"])
        )

    return await get_tags_for_image(session, image_id=image.id)
