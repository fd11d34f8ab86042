from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

# Stays under SQLite's bound-parameter limit on older builds (999).
SQLITE_IN_CHUNK_SIZE = 900


def chunks(values: Sequence[T], *, chunk_size: int | None = None) -> list[list[T]]:
    size = int(chunk_size if chunk_size is not None else SQLITE_IN_CHUNK_SIZE)
    items = list(values)
    if size <= 0:
        return [items]
    return [items[i : i + size] for i in range(0, len(items), size)]
