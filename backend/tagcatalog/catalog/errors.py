from __future__ import annotations

from collections.abc import Sequence
from typing import Any

_MISSING = object()


class CatalogError(Exception):
    pass


class InvalidInput(CatalogError, ValueError):
    def __init__(self, param: str, message: str, *, value: Any = _MISSING) -> None:
        super().__init__(f"{param}: {message}")
        self.param = param
        self.message = message
        self.value = None if value is _MISSING else value
        self.has_value = value is not _MISSING


class StoreUnavailable(CatalogError):
    def __init__(self, operation: str, message: str = "store query failed") -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message


class Inconsistent(CatalogError):
    """Enrichment or assembly found ids that do not line up with the page."""

    def __init__(self, message: str, *, image_ids: Sequence[int] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.image_ids = tuple(int(i) for i in image_ids)


class RecordNotFound(CatalogError, LookupError):
    def __init__(self, kind: str, key: Any) -> None:
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class Conflict(CatalogError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
