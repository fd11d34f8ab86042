from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tagcatalog.catalog.types import TagRecord
from tagcatalog.db.models.image_tags import ImageTag
from tagcatalog.db.models.tags import Tag


async def get_tag_by_id(session: AsyncSession, *, tag_id: int) -> TagRecord | None:
    row = (await session.execute(select(Tag.id, Tag.name).where(Tag.id == int(tag_id)).limit(1))).first()
    return TagRecord(id=int(row[0]), name=str(row[1])) if row is not None else None


async def get_tag_by_name(session: AsyncSession, *, name: str) -> TagRecord | None:
    row = (await session.execute(select(Tag.id, Tag.name).where(Tag.name == str(name)).limit(1))).first()
    return TagRecord(id=int(row[0]), name=str(row[1])) if row is not None else None


async def get_tags_for_image(session: AsyncSession, *, image_id: int) -> tuple[TagRecord, ...]:
    stmt = (
        select(Tag.id, Tag.name)
        .join(ImageTag, ImageTag.tag_id == Tag.id)
        .where(ImageTag.image_id == int(image_id))
        .order_by(Tag.name.asc())
    )
    rows = (await session.execute(stmt)).all()
    return tuple(TagRecord(id=int(r[0]), name=str(r[1])) for r in rows)
