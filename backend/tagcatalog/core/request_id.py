from __future__ import annotations

import secrets
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-Id"
_MAX_REQUEST_ID_LEN = 128


def new_request_id() -> str:
    return "req_" + secrets.token_hex(8)


def request_id_for(request: Any) -> str:
    """Request id stored on ``request.state``, else the incoming header, else a new one."""
    state = getattr(request, "state", None)
    rid = getattr(state, "request_id", None) if state is not None else None
    if rid:
        return str(rid)

    headers = getattr(request, "headers", None)
    raw = (headers.get(REQUEST_ID_HEADER) or "").strip() if headers is not None else ""
    rid = raw[:_MAX_REQUEST_ID_LEN] if raw else new_request_id()
    if state is not None:
        state.request_id = rid
    return rid


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):  # type: ignore[no-untyped-def]
        rid = request_id_for(request)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
