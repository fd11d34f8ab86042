from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import Response
from prometheus_client.exposition import CONTENT_TYPE_LATEST, generate_latest

from tagcatalog.catalog.errors import StoreUnavailable
from tagcatalog.core.logging import get_logger
from tagcatalog.core.metrics import METRICS_LAST_SCRAPE_SUCCESS, METRICS_SCRAPE_ERRORS_TOTAL, set_catalog_row_counts
from tagcatalog.db.store import CatalogStore

log = get_logger(__name__)

router = APIRouter()


@router.get("/metrics")
async def metrics(request: Request) -> Response:
    store: CatalogStore | None = getattr(request.app.state, "store", None)
    if store is not None and store.is_open:
        try:
            set_catalog_row_counts(await store.count_rows())
            METRICS_LAST_SCRAPE_SUCCESS.set(1)
        except StoreUnavailable as exc:
            log.warning("metrics_scrape_failed operation=%s", exc.operation)
            METRICS_SCRAPE_ERRORS_TOTAL.inc()
            METRICS_LAST_SCRAPE_SUCCESS.set(0)

    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
