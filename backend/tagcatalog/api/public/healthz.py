from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from tagcatalog.api.deps import get_store
from tagcatalog.core.errors import ErrorCode, error_body
from tagcatalog.core.request_id import request_id_for

router = APIRouter()


@router.get("/healthz")
async def healthz(request: Request) -> Any:
    rid = request_id_for(request)
    store = getattr(request.app.state, "store", None)
    db_ok = await get_store(request).ping() if store is not None and store.is_open else False

    if db_ok:
        return JSONResponse(status_code=200, content={"ok": True, "db_ok": True, "request_id": rid})
    return JSONResponse(
        status_code=503,
        content=error_body(
            code=ErrorCode.STORE_UNAVAILABLE,
            message="Database unavailable",
            request_id=rid,
            details={"db_ok": False},
        ),
    )
