from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field, StrictInt

from tagcatalog.api.deps import (
    dedupe_ids,
    get_store,
    image_json,
    load_json_body,
    resolve_page_size,
    tag_json,
    tagged_image_json,
)
from tagcatalog.catalog.query import get_paginated_tagged_images_with_tags
from tagcatalog.core.errors import ApiError, ErrorCode
from tagcatalog.core.logging import get_logger
from tagcatalog.core.request_id import request_id_for
from tagcatalog.db.images_get import get_image_with_tags
from tagcatalog.db.images_write import create_image, delete_image, set_image_tags

log = get_logger(__name__)

router = APIRouter()


class ImageCreateRequest(BaseModel):
    src: str = Field(min_length=1, max_length=4096)
    width: StrictInt = Field(gt=0)
    height: StrictInt = Field(gt=0)
    alt: str = Field(default="", max_length=4096)


class ImageTagsRequest(BaseModel):
    tag_ids: list[StrictInt] = Field(default_factory=list)


def _require_positive_id(value: int, *, param: str) -> int:
    if int(value) <= 0:
        raise ApiError(
            code=ErrorCode.BAD_REQUEST,
            message=f"Unsupported {param}",
            status_code=400,
            details={"param": param, "value": value},
        )
    return int(value)


@router.get("/images")
async def list_images(
    request: Request,
    tags: list[int] | None = Query(default=None),
    page: int = 1,
    page_size: int | None = None,
) -> Any:
    size = resolve_page_size(request, page_size)
    result = await get_paginated_tagged_images_with_tags(
        get_store(request),
        dedupe_ids(tags),
        page=page,
        page_size=size,
    )
    return {
        "ok": True,
        "data": [tagged_image_json(item) for item in result.data],
        "total": result.total,
        "page": result.page,
        "page_size": result.page_size,
        "request_id": request_id_for(request),
    }


@router.post("/images", status_code=201)
async def create_image_route(request: Request) -> Any:
    body = await load_json_body(request, ImageCreateRequest)

    async def _op(session):  # type: ignore[no-untyped-def]
        return await create_image(session, src=body.src, width=body.width, height=body.height, alt=body.alt)

    image = await get_store(request).write(_op, operation="create_image")
    log.info("image_created id=%s", image.id)
    return {"ok": True, "item": image_json(image), "request_id": request_id_for(request)}


@router.get("/images/{image_id}")
async def get_image(request: Request, image_id: int) -> Any:
    image_id = _require_positive_id(image_id, param="image_id")

    async def _op(session):  # type: ignore[no-untyped-def]
        return await get_image_with_tags(session, image_id=image_id)

    item = await get_store(request).read(_op, operation="get_image")
    if item is None:
        raise ApiError(code=ErrorCode.NOT_FOUND, message="Image not found", status_code=404)
    return {"ok": True, "item": tagged_image_json(item), "request_id": request_id_for(request)}


@router.delete("/images/{image_id}")
async def delete_image_route(request: Request, image_id: int) -> Any:
    image_id = _require_positive_id(image_id, param="image_id")

    async def _op(session):  # type: ignore[no-untyped-def]
        return await delete_image(session, image_id=image_id)

    image = await get_store(request).write(_op, operation="delete_image")
    log.info("image_deleted id=%s", image.id)
    return {"ok": True, "item": image_json(image), "request_id": request_id_for(request)}


@router.put("/images/{image_id}/tags")
async def set_image_tags_route(request: Request, image_id: int) -> Any:
    image_id = _require_positive_id(image_id, param="image_id")
    body = await load_json_body(request, ImageTagsRequest)
    tag_ids = dedupe_ids(body.tag_ids)

    async def _op(session):  # type: ignore[no-untyped-def]
        return await set_image_tags(session, image_id=image_id, tag_ids=tag_ids)

    tags = await get_store(request).write(_op, operation="set_image_tags")
    return {
        "ok": True,
        "item": {"image_id": image_id, "tags": [tag_json(t) for t in tags]},
        "request_id": request_id_for(request),
    }
