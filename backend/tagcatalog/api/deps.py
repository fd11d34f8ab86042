from __future__ import annotations

from typing import Any, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from tagcatalog.catalog.types import ImageRecord, TaggedImage, TagRecord
from tagcatalog.core.config import Settings
from tagcatalog.core.errors import ApiError, ErrorCode
from tagcatalog.db.store import CatalogStore

M = TypeVar("M", bound=BaseModel)


def get_store(request: Request) -> CatalogStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def resolve_page_size(request: Request, page_size: int | None) -> int:
    settings = get_settings(request)
    if page_size is None:
        return int(settings.default_page_size)
    if page_size > settings.max_page_size:
        raise ApiError(
            code=ErrorCode.BAD_REQUEST,
            message=f"page_size must be <= {settings.max_page_size}",
            status_code=400,
            details={"param": "page_size", "value": page_size},
        )
    return int(page_size)


async def load_json_body(request: Request, model: type[M]) -> M:
    try:
        data = await request.json()
    except ValueError as exc:
        raise ApiError(code=ErrorCode.BAD_REQUEST, message="Invalid JSON body", status_code=400) from exc
    if not isinstance(data, dict):
        raise ApiError(code=ErrorCode.BAD_REQUEST, message="Invalid JSON body", status_code=400)
    try:
        return model(**data)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()})
        raise ApiError(
            code=ErrorCode.BAD_REQUEST,
            message="Invalid request body",
            status_code=400,
            details={"fields": fields},
        ) from exc


def dedupe_ids(values: list[int] | None) -> list[int]:
    out: list[int] = []
    seen: set[int] = set()
    for value in values or []:
        if value in seen:
            continue
        seen.add(value)
        out.append(value)
    return out


def tag_json(tag: TagRecord) -> dict[str, Any]:
    return {"id": tag.id, "name": tag.name}


def image_json(image: ImageRecord) -> dict[str, Any]:
    return {
        "id": image.id,
        "src": image.src,
        "alt": image.alt,
        "width": image.width,
        "height": image.height,
    }


def tagged_image_json(item: TaggedImage) -> dict[str, Any]:
    body = image_json(item.image)
    body["tags"] = [tag_json(t) for t in item.tags]
    return body
