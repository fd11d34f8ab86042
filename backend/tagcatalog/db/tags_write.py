from __future__ import annotations

from sqlalchemy import delete, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tagcatalog.catalog.errors import Conflict, InvalidInput, RecordNotFound
from tagcatalog.catalog.filters import is_positive_int
from tagcatalog.catalog.types import TagRecord
from tagcatalog.db import sqlite_utils
from tagcatalog.db.models.image_tags import ImageTag
from tagcatalog.db.models.tags import Tag
from tagcatalog.db.store import SqlCatalogReader
from tagcatalog.db.tags_get import get_tag_by_id, get_tag_by_name


def normalize_tag_name(name: object, *, param: str = "name") -> str:
    if not isinstance(name, str):
        raise InvalidInput(param, "must be a string", value=name)
    value = name.strip()
    if not value:
        raise InvalidInput(param, "must not be empty", value=name)
    return value


async def require_tag(session: AsyncSession, *, tag_id: object, param: str = "tag_id") -> TagRecord:
    if not is_positive_int(tag_id):
        raise InvalidInput(param, "must be a positive integer", value=tag_id)
    tag = await get_tag_by_id(session, tag_id=int(tag_id))  # type: ignore[arg-type]
    if tag is None:
        raise RecordNotFound("tag", tag_id)
    return tag


async def create_tag(session: AsyncSession, *, name: str) -> TagRecord:
    """Create a tag, or return the existing one with the same name."""
    value = normalize_tag_name(name)
    stmt = sqlite_insert(Tag).values(name=value).on_conflict_do_nothing(index_elements=["name"])
    await session.execute(stmt)
    tag = await get_tag_by_name(session, name=value)
    if tag is None:
        raise RecordNotFound("tag", value)
    return tag


async def rename_tag(session: AsyncSession, *, tag_id: int, name: str) -> TagRecord:
    tag = await require_tag(session, tag_id=tag_id)
    value = normalize_tag_name(name)
    if value == tag.name:
        return tag

    clash = await get_tag_by_name(session, name=value)
    if clash is not None:
        raise Conflict(f"tag name already in use: {value}", field="name")

    try:
        await session.execute(update(Tag).where(Tag.id == tag.id).values(name=value))
        await session.flush()
    except IntegrityError as exc:
        raise Conflict(f"tag name already in use: {value}", field="name") from exc
    return TagRecord(id=tag.id, name=value)


async def replace_tag(session: AsyncSession, *, from_tag_id: int, to_tag_id: int) -> int:
    """Move every association of ``from_tag_id`` onto ``to_tag_id``.

    Images that already carry the target tag only lose the source tag, so the
    pair stays unique. Returns the number of images that carried the source tag.
    """
    source = await require_tag(session, tag_id=from_tag_id, param="from_tag_id")
    target = await require_tag(session, tag_id=to_tag_id, param="to_tag_id")
    if source.id == target.id:
        raise InvalidInput("to_tag_id", "must differ from the tag being replaced", value=to_tag_id)

    rows = await SqlCatalogReader(session).find_associations([source.id])
    image_ids = sorted({row.image_id for row in rows})
    if not image_ids:
        return 0

    for chunk in sqlite_utils.chunks(image_ids, chunk_size=sqlite_utils.SQLITE_IN_CHUNK_SIZE // 2):
        await session.execute(
            sqlite_insert(ImageTag)
            .values([{"image_id": i, "tag_id": target.id} for i in chunk])
            .on_conflict_do_nothing(index_elements=["image_id", "tag_id"])
        )
    await session.execute(delete(ImageTag).where(ImageTag.tag_id == source.id))
    return len(image_ids)


async def delete_tag(session: AsyncSession, *, tag_id: int) -> TagRecord:
    tag = await require_tag(session, tag_id=tag_id)
    await session.execute(delete(Tag).where(Tag.id == tag.id))
    return tag


async def merge_tags(session: AsyncSession, *, delete_tag_id: int, keep_tag_id: int) -> int:
    moved = await replace_tag(session, from_tag_id=delete_tag_id, to_tag_id=keep_tag_id)
    await delete_tag(session, tag_id=delete_tag_id)
    return moved
