from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from tagcatalog.api.metrics import router as metrics_router
from tagcatalog.api.public.healthz import router as healthz_router
from tagcatalog.api.public.images import router as images_router
from tagcatalog.api.public.tags import router as tags_router
from tagcatalog.catalog.errors import CatalogError
from tagcatalog.core.config import load_settings
from tagcatalog.core.errors import ApiError, ErrorCode, api_error_from_catalog_error, json_error_response
from tagcatalog.core.logging import configure_logging, get_logger
from tagcatalog.core.request_id import RequestIdMiddleware
from tagcatalog.db.store import CatalogStore

log = get_logger(__name__)


def create_app(store: CatalogStore | None = None) -> FastAPI:
    settings = load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def _lifespan(app_: FastAPI) -> AsyncIterator[None]:
        yield
        store_ = getattr(app_.state, "store", None)
        if store_ is not None:
            await store_.close()

    app = FastAPI(title="tagcatalog", lifespan=_lifespan)

    @app.exception_handler(ApiError)
    async def _api_error_handler(request: Request, exc: ApiError):  # type: ignore[no-redef]
        return json_error_response(error=exc, request=request)

    @app.exception_handler(CatalogError)
    async def _catalog_error_handler(request: Request, exc: CatalogError):  # type: ignore[no-redef]
        error = api_error_from_catalog_error(exc)
        if error.status_code >= 500:
            log.error("catalog_error path=%s code=%s err=%r", request.url.path, error.code.value, exc)
        return json_error_response(error=error, request=request)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore[no-redef]
        params = sorted({str(err.get("loc", ("", ""))[-1]) for err in exc.errors()})
        error = ApiError(
            code=ErrorCode.BAD_REQUEST,
            message="Invalid request parameters",
            status_code=400,
            details={"params": params},
        )
        return json_error_response(error=error, request=request)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):  # type: ignore[no-redef]
        log.exception("unhandled_exception path=%s", request.url.path)
        error = ApiError(
            code=ErrorCode.INTERNAL_ERROR,
            message="Internal server error",
            status_code=500,
            details={"error_type": type(exc).__name__},
        )
        return json_error_response(error=error, request=request)

    app.add_middleware(RequestIdMiddleware)

    app.state.settings = settings
    app.state.store = (store or CatalogStore(settings.database_url)).open()
    log.info("catalog_store_opened env=%s url=%s", settings.app_env, settings.database_url)

    app.include_router(healthz_router)
    app.include_router(images_router)
    app.include_router(tags_router)
    app.include_router(metrics_router)

    return app
