"""
Prometheus scrape endpoint.

GET /metrics exposes the ranking service registry: request RED metrics,
recompute counters and durations, the final score histogram, query
durations by type and host CPU/memory.
"""
from fastapi import APIRouter, Response
from fastapi.responses import PlainTextResponse

from storerank.core.logging import get_logger
from storerank.core.metrics import get_metrics, get_metrics_content_type

logger = get_logger(__name__)
router = APIRouter()

SCRAPE_ERROR_BODY = b"# ranking metrics unavailable\n"


@router.get("", response_class=PlainTextResponse)
async def scrape_metrics() -> Response:
    """
    Render the registry in Prometheus text format.

    Unauthenticated; the scraper reaches it on the internal network.
    A collection failure yields a comment-only body so the scrape itself
    still succeeds and the gap shows up as missing series.
    """
    try:
        body = get_metrics()
    except Exception as e:
        logger.error(
            "metrics_scrape_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        body = SCRAPE_ERROR_BODY
    return Response(content=body, media_type=get_metrics_content_type())
