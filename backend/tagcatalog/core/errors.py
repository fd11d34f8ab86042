from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi.responses import JSONResponse

from tagcatalog.catalog.errors import (
    CatalogError,
    Conflict,
    Inconsistent,
    InvalidInput,
    RecordNotFound,
    StoreUnavailable,
)
from tagcatalog.core.request_id import request_id_for


class ErrorCode(str, Enum):
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    INCONSISTENT = "INCONSISTENT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_DEFAULT_MESSAGE_BY_CODE: dict[ErrorCode, str] = {
    ErrorCode.BAD_REQUEST: "Invalid request",
    ErrorCode.NOT_FOUND: "Not found",
    ErrorCode.CONFLICT: "Conflict",
    ErrorCode.STORE_UNAVAILABLE: "Store unavailable",
    ErrorCode.INCONSISTENT: "Inconsistent store result",
    ErrorCode.INTERNAL_ERROR: "Internal server error",
}


@dataclass(frozen=True, slots=True)
class ApiError(Exception):
    code: ErrorCode
    message: str
    status_code: int = 400
    details: dict[str, Any] | None = None


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return str(value)


def api_error_from_catalog_error(exc: CatalogError) -> ApiError:
    if isinstance(exc, InvalidInput):
        details: dict[str, Any] = {"param": exc.param}
        if exc.has_value:
            details["value"] = _jsonable(exc.value)
        return ApiError(code=ErrorCode.BAD_REQUEST, message=str(exc), status_code=400, details=details)
    if isinstance(exc, RecordNotFound):
        return ApiError(
            code=ErrorCode.NOT_FOUND,
            message=str(exc),
            status_code=404,
            details={"kind": exc.kind, "key": _jsonable(exc.key)},
        )
    if isinstance(exc, Conflict):
        return ApiError(
            code=ErrorCode.CONFLICT,
            message=exc.message,
            status_code=409,
            details={"field": exc.field} if exc.field else None,
        )
    if isinstance(exc, StoreUnavailable):
        return ApiError(
            code=ErrorCode.STORE_UNAVAILABLE,
            message="Store unavailable",
            status_code=503,
            details={"operation": exc.operation},
        )
    if isinstance(exc, Inconsistent):
        return ApiError(
            code=ErrorCode.INCONSISTENT,
            message=exc.message,
            status_code=500,
            details={"image_ids": list(exc.image_ids)},
        )
    return ApiError(code=ErrorCode.INTERNAL_ERROR, message=str(exc), status_code=500)


def error_body(
    *,
    code: ErrorCode,
    message: str,
    request_id: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "ok": False,
        "code": code.value,
        "message": str(message or "").strip() or _DEFAULT_MESSAGE_BY_CODE.get(code, "Request failed"),
        "request_id": request_id,
        "details": details or {},
    }


def json_error_response(*, error: ApiError, request: Any) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error_body(
            code=error.code,
            message=error.message,
            request_id=request_id_for(request),
            details=error.details,
        ),
    )
