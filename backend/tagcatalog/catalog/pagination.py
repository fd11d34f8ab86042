from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from tagcatalog.catalog.errors import InvalidInput
from tagcatalog.catalog.filters import is_positive_int
from tagcatalog.catalog.types import PageSlice

T = TypeVar("T")

DEFAULT_PAGE_NUMBER = 1
DEFAULT_PAGE_SIZE = 25


def validate_page_params(page: object, page_size: object) -> tuple[int, int]:
    if not is_positive_int(page):
        raise InvalidInput("page", "must be a positive integer", value=page)
    if not is_positive_int(page_size):
        raise InvalidInput("page_size", "must be a positive integer", value=page_size)
    return int(page), int(page_size)  # type: ignore[arg-type]


def page_offset(page: int, page_size: int) -> int:
    return (int(page) - 1) * int(page_size)


def paginate(
    items: Sequence[T],
    page: int = DEFAULT_PAGE_NUMBER,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PageSlice[T]:
    page_i, page_size_i = validate_page_params(page, page_size)

    # total comes from the same sequence that is sliced, never a second count.
    total = len(items)
    start = page_offset(page_i, page_size_i)
    window = list(items[start : start + page_size_i]) if start < total else []

    return PageSlice(items=window, total=total, page=page_i, page_size=page_size_i)
