from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ImageRecord:
    id: int
    src: str
    width: int
    height: int
    alt: str = ""


@dataclass(frozen=True, slots=True)
class TagRecord:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class AssociationRow:
    image_id: int
    tag_id: int


@dataclass(frozen=True, slots=True)
class ImageTagRow:
    image_id: int
    tag_id: int
    tag_name: str


@dataclass(frozen=True, slots=True)
class TaggedImage:
    image: ImageRecord
    tags: tuple[TagRecord, ...]

    @property
    def id(self) -> int:
        return self.image.id


@dataclass(frozen=True, slots=True)
class PageSlice(Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int


@dataclass(frozen=True, slots=True)
class PaginatedResult(Generic[T]):
    data: list[T]
    total: int
    page: int
    page_size: int


class CatalogReader(Protocol):
    """Read operations one query call performs against a single snapshot."""

    async def find_associations(self, tag_ids: Sequence[int] | None = None) -> list[AssociationRow]: ...

    async def find_image_ids_with_all_tags(self, tag_ids: Sequence[int]) -> list[int]: ...

    async def find_untagged_image_ids(self) -> list[int]: ...

    async def find_images_by_id(self, ids: Sequence[int]) -> list[ImageRecord]: ...

    async def find_tags_for_images(self, ids: Sequence[int]) -> list[ImageTagRow]: ...


class SnapshotSource(Protocol):
    def snapshot(self) -> AbstractAsyncContextManager[CatalogReader]: ...
