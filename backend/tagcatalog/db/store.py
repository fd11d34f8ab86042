from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import sqlalchemy as sa
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tagcatalog.catalog.errors import StoreUnavailable
from tagcatalog.catalog.filters import (
    build_intersection_query,
    build_tag_count_query,
    build_untagged_query,
    validate_tag_ids,
)
from tagcatalog.catalog.types import AssociationRow, ImageRecord, ImageTagRow
from tagcatalog.core.logging import get_logger
from tagcatalog.db import sqlite_utils
from tagcatalog.db.engine import create_engine
from tagcatalog.db.models.base import Base
from tagcatalog.db.models.image_tags import ImageTag
from tagcatalog.db.models.images import Image
from tagcatalog.db.models.tags import Tag
from tagcatalog.db.session import create_sessionmaker, with_sqlite_busy_retry

log = get_logger(__name__)

T = TypeVar("T")


def image_record(row: Any) -> ImageRecord:
    return ImageRecord(
        id=int(row.id),
        src=str(row.src),
        width=int(row.width),
        height=int(row.height),
        alt=str(row.alt or ""),
    )


class SqlCatalogReader:
    """Store adapter for the query engine, bound to one session (one snapshot)."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _execute(self, operation: str, stmt: sa.Executable) -> sa.Result[Any]:
        try:
            return await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(operation, type(exc).__name__) from exc

    async def find_associations(self, tag_ids: Sequence[int] | None = None) -> list[AssociationRow]:
        base = select(ImageTag.image_id, ImageTag.tag_id)
        if tag_ids is None:
            stmts = [base]
        else:
            ids = [int(t) for t in tag_ids]
            if not ids:
                return []
            stmts = [base.where(ImageTag.tag_id.in_(chunk)) for chunk in sqlite_utils.chunks(ids)]

        out: list[AssociationRow] = []
        for stmt in stmts:
            rows = (await self._execute("find_associations", stmt)).all()
            out.extend(AssociationRow(image_id=int(r[0]), tag_id=int(r[1])) for r in rows)
        out.sort(key=lambda r: (r.image_id, r.tag_id))
        return out

    async def find_image_ids_with_all_tags(self, tag_ids: Sequence[int]) -> list[int]:
        ids = validate_tag_ids(tag_ids, allow_empty=False)
        parts = sqlite_utils.chunks(ids)
        if len(parts) == 1:
            rows = (await self._execute("find_image_ids_with_all_tags", build_intersection_query(ids))).scalars().all()
            return [int(r) for r in rows]

        # Slices are disjoint, so per-slice distinct counts add up to the full count.
        found: dict[int, int] = {}
        for chunk in parts:
            rows = (await self._execute("find_image_ids_with_all_tags", build_tag_count_query(chunk))).all()
            for image_id, n in rows:
                found[int(image_id)] = found.get(int(image_id), 0) + int(n)
        return sorted(image_id for image_id, n in found.items() if n == len(ids))

    async def find_untagged_image_ids(self) -> list[int]:
        rows = (await self._execute("find_untagged_image_ids", build_untagged_query())).scalars().all()
        return [int(r) for r in rows]

    async def find_images_by_id(self, ids: Sequence[int]) -> list[ImageRecord]:
        out: list[ImageRecord] = []
        for chunk in sqlite_utils.chunks([int(i) for i in ids]):
            stmt = select(Image.id, Image.src, Image.width, Image.height, Image.alt).where(Image.id.in_(chunk))
            rows = (await self._execute("find_images_by_id", stmt)).all()
            out.extend(image_record(r) for r in rows)
        return out

    async def find_tags_for_images(self, ids: Sequence[int]) -> list[ImageTagRow]:
        out: list[ImageTagRow] = []
        for chunk in sqlite_utils.chunks([int(i) for i in ids]):
            stmt = (
                select(ImageTag.image_id, Tag.id, Tag.name)
                .join(Tag, Tag.id == ImageTag.tag_id)
                .where(ImageTag.image_id.in_(chunk))
                .order_by(ImageTag.image_id.asc(), Tag.name.asc())
            )
            rows = (await self._execute("find_tags_for_images", stmt)).all()
            out.extend(ImageTagRow(image_id=int(r[0]), tag_id=int(r[1]), tag_name=str(r[2])) for r in rows)
        return out


class CatalogStore:
    """Process-wide handle on the catalog database with an explicit open/close lifecycle."""

    def __init__(self, database_url: str | None = None, *, engine: AsyncEngine | None = None) -> None:
        if database_url is None and engine is None:
            raise ValueError("database_url or engine is required")
        self._database_url = database_url
        self._engine = engine
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = (
            create_sessionmaker(engine) if engine is not None else None
        )

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("CatalogStore is not open")
        return self._engine

    def open(self) -> CatalogStore:
        if self._engine is None:
            assert self._database_url is not None
            self._engine = create_engine(self._database_url)
            self._sessionmaker = create_sessionmaker(self._engine)
        return self

    async def close(self) -> None:
        engine, self._engine, self._sessionmaker = self._engine, None, None
        if engine is not None:
            await engine.dispose()

    async def __aenter__(self) -> CatalogStore:
        return self.open()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _sessions(self) -> async_sessionmaker[AsyncSession]:
        if self._sessionmaker is None:
            raise RuntimeError("CatalogStore is not open")
        return self._sessionmaker

    async def create_schema(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise StoreUnavailable("create_schema", type(exc).__name__) from exc

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[SqlCatalogReader]:
        # Every read of one query call shares this transaction.
        try:
            async with self._sessions()() as session:
                async with session.begin():
                    yield SqlCatalogReader(session)
        except SQLAlchemyError as exc:
            log.warning("snapshot_failed err=%s", type(exc).__name__)
            raise StoreUnavailable("snapshot", type(exc).__name__) from exc

    async def read(self, op: Callable[[AsyncSession], Awaitable[T]], *, operation: str) -> T:
        try:
            async with self._sessions()() as session:
                return await op(session)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(operation, type(exc).__name__) from exc

    async def write(self, op: Callable[[AsyncSession], Awaitable[T]], *, operation: str) -> T:
        sessions = self._sessions()

        async def _attempt() -> T:
            async with sessions() as session:
                async with session.begin():
                    return await op(session)

        try:
            return await with_sqlite_busy_retry(_attempt)
        except SQLAlchemyError as exc:
            log.warning("store_write_failed operation=%s err=%s", operation, type(exc).__name__)
            raise StoreUnavailable(operation, type(exc).__name__) from exc

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.exec_driver_sql("SELECT 1")
            return True
        except (SQLAlchemyError, OSError, RuntimeError):
            return False

    async def count_rows(self) -> dict[str, int]:
        async def _op(session: AsyncSession) -> dict[str, int]:
            reader = SqlCatalogReader(session)
            images = (await session.execute(select(func.count()).select_from(Image))).scalar_one()
            tags = (await session.execute(select(func.count()).select_from(Tag))).scalar_one()
            links = (await session.execute(select(func.count()).select_from(ImageTag))).scalar_one()
            untagged = len(await reader.find_untagged_image_ids())
            return {
                "images": int(images),
                "tags": int(tags),
                "associations": int(links),
                "untagged_images": int(untagged),
            }

        return await self.read(_op, operation="count_rows")
