from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tagcatalog.catalog.types import ImageRecord, TaggedImage
from tagcatalog.db.models.images import Image
from tagcatalog.db.store import image_record
from tagcatalog.db.tags_get import get_tags_for_image


async def get_image_by_id(session: AsyncSession, *, image_id: int) -> ImageRecord | None:
    stmt = select(Image.id, Image.src, Image.width, Image.height, Image.alt).where(Image.id == int(image_id)).limit(1)
    row = (await session.execute(stmt)).first()
    return image_record(row) if row is not None else None


async def get_image_with_tags(session: AsyncSession, *, image_id: int) -> TaggedImage | None:
    image = await get_image_by_id(session, image_id=image_id)
    if image is None:
        return None
    tags = await get_tags_for_image(session, image_id=image.id)
    return TaggedImage(image=image, tags=tags)
