from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field, StrictInt

from tagcatalog.api.deps import get_store, image_json, load_json_body, resolve_page_size, tag_json
from tagcatalog.core.errors import ApiError, ErrorCode
from tagcatalog.core.logging import get_logger
from tagcatalog.core.request_id import request_id_for
from tagcatalog.db.tags_get import get_tag_by_id
from tagcatalog.db.tags_list import DEFAULT_SAMPLE_SIZE, sample_images_for_tags
from tagcatalog.db.tags_list import list_tags as db_list_tags
from tagcatalog.db.tags_write import create_tag, delete_tag, merge_tags, rename_tag, replace_tag

log = get_logger(__name__)

router = APIRouter()

_MAX_TAG_NAME_LEN = 200
_MAX_SAMPLE_SIZE = 50


class TagNameRequest(BaseModel):
    name: str = Field(min_length=1, max_length=_MAX_TAG_NAME_LEN)


class TagReplaceRequest(BaseModel):
    with_tag_id: StrictInt = Field(gt=0)


def _require_tag_id(tag_id: int) -> int:
    if int(tag_id) <= 0:
        raise ApiError(
            code=ErrorCode.BAD_REQUEST,
            message="Unsupported tag_id",
            status_code=400,
            details={"param": "tag_id", "value": tag_id},
        )
    return int(tag_id)


@router.get("/tags")
async def list_tags(
    request: Request,
    q: str | None = None,
    page: int = 1,
    page_size: int | None = None,
    include_sample_images: bool = False,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> Any:
    q_norm = (q or "").strip()
    if len(q_norm) > _MAX_TAG_NAME_LEN:
        raise ApiError(code=ErrorCode.BAD_REQUEST, message="Unsupported q", status_code=400, details={"param": "q"})
    if include_sample_images and not (0 < int(sample_size) <= _MAX_SAMPLE_SIZE):
        raise ApiError(
            code=ErrorCode.BAD_REQUEST,
            message="Unsupported sample_size",
            status_code=400,
            details={"param": "sample_size", "value": sample_size, "max": _MAX_SAMPLE_SIZE},
        )
    size = resolve_page_size(request, page_size)

    async def _op(session):  # type: ignore[no-untyped-def]
        result = await db_list_tags(session, page=page, page_size=size, q=q_norm or None)
        samples = {}
        if include_sample_images and result.data:
            samples = await sample_images_for_tags(
                session, tag_ids=[t.id for t in result.data], sample_size=sample_size
            )
        return result, samples

    result, samples = await get_store(request).read(_op, operation="list_tags")

    def _tag_body(tag):  # type: ignore[no-untyped-def]
        body = tag_json(tag)
        if include_sample_images:
            body["sample_images"] = [image_json(img) for img in samples.get(tag.id, ())]
        return body

    return {
        "ok": True,
        "data": [_tag_body(t) for t in result.data],
        "total": result.total,
        "page": result.page,
        "page_size": result.page_size,
        "request_id": request_id_for(request),
    }


@router.post("/tags", status_code=201)
async def create_tag_route(request: Request) -> Any:
    body = await load_json_body(request, TagNameRequest)

    async def _op(session):  # type: ignore[no-untyped-def]
        return await create_tag(session, name=body.name)

    tag = await get_store(request).write(_op, operation="create_tag")
    return {"ok": True, "item": tag_json(tag), "request_id": request_id_for(request)}


@router.get("/tags/{tag_id}")
async def get_tag(request: Request, tag_id: int) -> Any:
    tag_id = _require_tag_id(tag_id)

    async def _op(session):  # type: ignore[no-untyped-def]
        return await get_tag_by_id(session, tag_id=tag_id)

    tag = await get_store(request).read(_op, operation="get_tag")
    if tag is None:
        raise ApiError(code=ErrorCode.NOT_FOUND, message="Tag not found", status_code=404)
    return {"ok": True, "item": tag_json(tag), "request_id": request_id_for(request)}


@router.post("/tags/{tag_id}/rename")
async def rename_tag_route(request: Request, tag_id: int) -> Any:
    tag_id = _require_tag_id(tag_id)
    body = await load_json_body(request, TagNameRequest)

    async def _op(session):  # type: ignore[no-untyped-def]
        return await rename_tag(session, tag_id=tag_id, name=body.name)

    tag = await get_store(request).write(_op, operation="rename_tag")
    log.info("tag_renamed id=%s name=%s", tag.id, tag.name)
    return {"ok": True, "item": tag_json(tag), "request_id": request_id_for(request)}


@router.post("/tags/{tag_id}/replace")
async def replace_tag_route(request: Request, tag_id: int) -> Any:
    tag_id = _require_tag_id(tag_id)
    body = await load_json_body(request, TagReplaceRequest)

    async def _op(session):  # type: ignore[no-untyped-def]
        return await replace_tag(session, from_tag_id=tag_id, to_tag_id=body.with_tag_id)

    moved = await get_store(request).write(_op, operation="replace_tag")
    log.info("tag_replaced from=%s to=%s images=%s", tag_id, body.with_tag_id, moved)
    return {
        "ok": True,
        "item": {"from_tag_id": tag_id, "to_tag_id": body.with_tag_id, "images_retagged": moved},
        "request_id": request_id_for(request),
    }


@router.post("/tags/{tag_id}/merge")
async def merge_tag_route(request: Request, tag_id: int) -> Any:
    tag_id = _require_tag_id(tag_id)
    body = await load_json_body(request, TagReplaceRequest)

    async def _op(session):  # type: ignore[no-untyped-def]
        return await merge_tags(session, delete_tag_id=tag_id, keep_tag_id=body.with_tag_id)

    moved = await get_store(request).write(_op, operation="merge_tags")
    log.info("tag_merged deleted=%s kept=%s images=%s", tag_id, body.with_tag_id, moved)
    return {
        "ok": True,
        "item": {"deleted_tag_id": tag_id, "kept_tag_id": body.with_tag_id, "images_retagged": moved},
        "request_id": request_id_for(request),
    }


@router.delete("/tags/{tag_id}")
async def delete_tag_route(request: Request, tag_id: int) -> Any:
    tag_id = _require_tag_id(tag_id)

    async def _op(session):  # type: ignore[no-untyped-def]
        return await delete_tag(session, tag_id=tag_id)

    tag = await get_store(request).write(_op, operation="delete_tag")
    log.info("tag_deleted id=%s name=%s", tag.id, tag.name)
    return {"ok": True, "item": tag_json(tag), "request_id": request_id_for(request)}
