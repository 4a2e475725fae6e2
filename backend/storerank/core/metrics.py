"""
Prometheus metrics collection module.

Metrics Categories:
- RED Metrics: Rate, Errors, Duration of HTTP requests
- Ranking Metrics: recompute passes, listings rescored, score distribution
- Database Metrics: query duration by query type
- Resource Metrics: CPU, memory

All metrics follow Prometheus naming conventions:
- Counters: _total suffix
- Histograms: _seconds suffix for duration, _distribution for distributions
- Gauges: No special suffix
"""
import psutil
from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    generate_latest,
    REGISTRY,
    CONTENT_TYPE_LATEST,
)

from storerank.core.logging import get_logger

logger = get_logger(__name__)

registry = REGISTRY

# ============================================================================
# RED METRICS - Rate, Errors, Duration
# ============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
    registry=registry,
)

http_errors_total = Counter(
    "http_errors_total",
    "Total number of HTTP errors",
    ["method", "endpoint", "status_code"],
    registry=registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=registry,
)

# ============================================================================
# RANKING METRICS
# ============================================================================

ranking_recompute_runs_total = Counter(
    "ranking_recompute_runs_total",
    "Total number of ranking recompute operations",
    ["mode", "outcome"],  # mode: "batch" | "single"; outcome: "success" | "error"
    registry=registry,
)

ranking_listings_rescored_total = Counter(
    "ranking_listings_rescored_total",
    "Total number of listing scores written",
    ["mode"],
    registry=registry,
)

ranking_recompute_duration_seconds = Histogram(
    "ranking_recompute_duration_seconds",
    "Duration of ranking recompute operations in seconds",
    ["mode"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 15.0, 60.0, 300.0, 900.0],
    registry=registry,
)

ranking_score_distribution = Histogram(
    "ranking_score_distribution",
    "Distribution of final listing scores",
    buckets=[0.0, 0.25, 0.5, 0.75, 1.0, 2.0, 4.0, 6.0, 8.0, 10.0],
    registry=registry,
)

ranking_weights_defaulted_total = Counter(
    "ranking_weights_defaulted_total",
    "Total number of weight lookups that fell back to default coefficients",
    registry=registry,
)

# ============================================================================
# DATABASE METRICS
# ============================================================================

db_query_duration_seconds = Histogram(
    "db_query_duration_seconds",
    "Database query duration in seconds",
    ["query_type"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    registry=registry,
)

# ============================================================================
# RESOURCE METRICS
# ============================================================================

system_cpu_usage_percent = Gauge(
    "system_cpu_usage_percent",
    "System CPU usage percentage",
    registry=registry,
)

system_memory_usage_bytes = Gauge(
    "system_memory_usage_bytes",
    "System memory usage in bytes",
    registry=registry,
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def normalize_endpoint(path: str) -> str:
    """
    Normalize endpoint path for metrics.

    Replaces product identifiers with placeholders to avoid high
    cardinality in metrics.

    Examples:
        /admin/ranking/explain/p_123 -> /admin/ranking/explain/{product_id}
        /admin/ranking/products/p_123/recompute -> /admin/ranking/products/{product_id}/recompute
        /health?x=1 -> /health
    """
    if "?" in path:
        path = path.split("?")[0]

    parts = path.split("/")
    # ["", "admin", "ranking", "<resource>", "<product_id>", ...]
    if len(parts) >= 5 and parts[1] == "admin" and parts[2] == "ranking":
        if parts[3] in ("explain", "products") and parts[4]:
            parts[4] = "{product_id}"
            return "/".join(parts)

    return path


def record_http_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """
    Record HTTP request metrics (RED metrics).

    Args:
        method: HTTP method (GET, POST, etc.)
        endpoint: Request path (normalized here)
        status_code: HTTP status code
        duration_seconds: Request duration in seconds
    """
    normalized_endpoint = normalize_endpoint(endpoint)

    http_requests_total.labels(
        method=method,
        endpoint=normalized_endpoint,
        status=str(status_code),
    ).inc()

    if status_code >= 400:
        http_errors_total.labels(
            method=method,
            endpoint=normalized_endpoint,
            status_code=str(status_code),
        ).inc()

    http_request_duration_seconds.labels(
        method=method,
        endpoint=normalized_endpoint,
    ).observe(duration_seconds)


def record_db_query_duration(query_type: str, duration_seconds: float) -> None:
    db_query_duration_seconds.labels(query_type=query_type).observe(duration_seconds)


def record_recompute(mode: str, outcome: str, duration_seconds: float, listings: int = 0) -> None:
    """
    Record one recompute operation.

    Args:
        mode: "batch" or "single"
        outcome: "success" or "error"
        duration_seconds: Wall time of the operation
        listings: Number of listing scores written
    """
    ranking_recompute_runs_total.labels(mode=mode, outcome=outcome).inc()
    ranking_recompute_duration_seconds.labels(mode=mode).observe(duration_seconds)
    if listings:
        ranking_listings_rescored_total.labels(mode=mode).inc(listings)


def record_ranking_score(score: float) -> None:
    ranking_score_distribution.observe(score)


def record_weights_defaulted() -> None:
    ranking_weights_defaulted_total.inc()


def update_resource_metrics() -> None:
    """
    Update system resource metrics (CPU, memory).

    Called on-demand when metrics are scraped.
    """
    try:
        system_cpu_usage_percent.set(psutil.cpu_percent(interval=0.1))
        system_memory_usage_bytes.set(psutil.virtual_memory().used)
    except Exception as e:
        logger.warning(
            "metrics_resource_update_failed",
            error=str(e),
            error_type=type(e).__name__,
        )


def get_metrics() -> bytes:
    """Get Prometheus metrics in text format."""
    update_resource_metrics()
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
