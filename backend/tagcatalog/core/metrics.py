from __future__ import annotations

from collections.abc import Mapping

from prometheus_client import Counter, Gauge, Histogram

QUERY_MODES: tuple[str, ...] = ("tagged", "untagged")

QUERY_RESULTS: tuple[str, ...] = (
    "ok",
    "invalid_input",
    "store_unavailable",
    "inconsistent",
)

CATALOG_ROW_KINDS: tuple[str, ...] = (
    "images",
    "tags",
    "associations",
    "untagged_images",
)

IMAGE_QUERIES_TOTAL = Counter(
    "tagcatalog_image_queries_total",
    "Total paginated tagged-image queries by mode and result.",
    ["mode", "result"],
)

IMAGE_QUERY_LATENCY_SECONDS = Histogram(
    "tagcatalog_image_query_latency_seconds",
    "Latency of paginated tagged-image queries (seconds).",
    buckets=(
        0.001,
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
    ),
)

CATALOG_ROWS = Gauge(
    "tagcatalog_catalog_rows",
    "Current catalog row counts by kind (refreshed on scrape).",
    ["kind"],
)

METRICS_SCRAPE_ERRORS_TOTAL = Counter(
    "tagcatalog_metrics_scrape_errors_total",
    "Total /metrics scrape errors while querying the store.",
)

METRICS_LAST_SCRAPE_SUCCESS = Gauge(
    "tagcatalog_metrics_last_scrape_success",
    "Last /metrics scrape success (1=ok, 0=error).",
)


def _init_labelsets() -> None:
    for mode in QUERY_MODES:
        for result in QUERY_RESULTS:
            IMAGE_QUERIES_TOTAL.labels(mode=mode, result=result).inc(0)
    for kind in CATALOG_ROW_KINDS:
        CATALOG_ROWS.labels(kind=kind).set(0)
    METRICS_LAST_SCRAPE_SUCCESS.set(1)


_init_labelsets()


def observe_image_query(*, mode: str, result: str, duration_s: float | None) -> None:
    mode = mode if mode in QUERY_MODES else "tagged"
    result = result if result in QUERY_RESULTS else "store_unavailable"
    IMAGE_QUERIES_TOTAL.labels(mode=mode, result=result).inc()
    if duration_s is not None and duration_s >= 0:
        IMAGE_QUERY_LATENCY_SECONDS.observe(duration_s)


def set_catalog_row_counts(counts: Mapping[str, int]) -> None:
    for kind in CATALOG_ROW_KINDS:
        CATALOG_ROWS.labels(kind=kind).set(float(int(counts.get(kind, 0) or 0)))
