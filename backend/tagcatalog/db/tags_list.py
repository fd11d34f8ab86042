from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tagcatalog.catalog.errors import InvalidInput
from tagcatalog.catalog.filters import is_positive_int
from tagcatalog.catalog.pagination import DEFAULT_PAGE_NUMBER, DEFAULT_PAGE_SIZE, page_offset, validate_page_params
from tagcatalog.catalog.types import ImageRecord, PaginatedResult, TagRecord
from tagcatalog.db import sqlite_utils
from tagcatalog.db.models.image_tags import ImageTag
from tagcatalog.db.models.images import Image
from tagcatalog.db.models.tags import Tag
from tagcatalog.db.store import image_record

DEFAULT_SAMPLE_SIZE = 5


async def list_tags(
    session: AsyncSession,
    *,
    page: int = DEFAULT_PAGE_NUMBER,
    page_size: int = DEFAULT_PAGE_SIZE,
    q: str | None = None,
) -> PaginatedResult[TagRecord]:
    page_i, page_size_i = validate_page_params(page, page_size)
    q_norm = (q or "").strip()

    clauses: list[object] = []
    if q_norm:
        clauses.append(Tag.name.contains(q_norm, autoescape=True))

    # count and page run in the session's single transaction
    total = int((await session.execute(select(func.count()).select_from(Tag).where(*clauses))).scalar_one())

    stmt = (
        select(Tag.id, Tag.name)
        .where(*clauses)
        .order_by(Tag.name.asc())
        .offset(page_offset(page_i, page_size_i))
        .limit(page_size_i)
    )
    rows = (await session.execute(stmt)).all() if total else []

    return PaginatedResult(
        data=[TagRecord(id=int(r[0]), name=str(r[1])) for r in rows],
        total=total,
        page=page_i,
        page_size=page_size_i,
    )


async def sample_images_for_tags(
    session: AsyncSession,
    *,
    tag_ids: Sequence[int],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> dict[int, tuple[ImageRecord, ...]]:
    """Up to ``sample_size`` newest images (highest id first) for each tag in ``tag_ids``."""
    if not is_positive_int(sample_size):
        raise InvalidInput("sample_size", "must be a positive integer", value=sample_size)
    ids = [int(t) for t in tag_ids]
    out: dict[int, list[ImageRecord]] = {t: [] for t in ids}

    for chunk in sqlite_utils.chunks(ids):
        ranked = (
            select(
                ImageTag.tag_id.label("tag_id"),
                Image.id.label("id"),
                Image.src.label("src"),
                Image.width.label("width"),
                Image.height.label("height"),
                Image.alt.label("alt"),
                func.row_number()
                .over(partition_by=ImageTag.tag_id, order_by=Image.id.desc())
                .label("rn"),
            )
            .join(Image, Image.id == ImageTag.image_id)
            .where(ImageTag.tag_id.in_(chunk))
            .subquery()
        )
        stmt = select(ranked).where(ranked.c.rn <= int(sample_size)).order_by(ranked.c.tag_id, ranked.c.rn)
        for row in (await session.execute(stmt)).all():
            out[int(row.tag_id)].append(image_record(row))

    return {tag_id: tuple(images) for tag_id, images in out.items()}
