import time

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse

from storerank import __version__
from .core.config import get_log_json, get_log_level
from .core.logging import configure_logging, get_logger, get_trace_id
from .core.middleware import TraceIDMiddleware
from .core.metrics import record_http_request
from .core.tracing import (
    configure_tracing,
    instrument_fastapi,
    shutdown_tracing,
    get_trace_id_from_context,
    record_exception,
    set_span_status,
    StatusCode,
)
from .core.database_pool import initialize_database_pool, close_database_pools
from .routes import health, metrics, ranking

# JSON output in production (containerized), console output in development
configure_logging(log_level=get_log_level(), json_output=get_log_json())

logger = get_logger(__name__)

configure_tracing()

app = FastAPI(
    title="StoreRank Ranking API",
    description="Listing ranking, recompute and score explanation for the marketplace catalog",
    version=__version__,
)

app.add_middleware(TraceIDMiddleware)

instrument_fastapi(app)


@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup."""
    logger.info("app_startup_started")

    db_pool_initialized = await initialize_database_pool()
    if db_pool_initialized:
        logger.info("app_startup_database_pool_ready")
    else:
        logger.warning(
            "app_startup_database_pool_unavailable",
            message="Database connection pool not available. Ranking endpoints will fail until it is.",
        )

    logger.info("app_startup_completed")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup resources on application shutdown."""
    logger.info("app_shutdown_started")
    shutdown_tracing()
    await close_database_pools()
    logger.info("app_shutdown_completed")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions."""
    start_time = getattr(request.state, "start_time", time.time())
    duration = time.time() - start_time

    trace_id = get_trace_id() or get_trace_id_from_context()

    set_span_status(StatusCode.ERROR if exc.status_code >= 500 else StatusCode.OK, str(exc.detail))

    record_http_request(
        method=request.method,
        endpoint=request.url.path,
        status_code=exc.status_code,
        duration_seconds=duration,
    )

    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
    )
    response = JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "status_code": exc.status_code,
            "trace_id": trace_id,
        }
    )
    if trace_id:
        response.headers["X-Trace-ID"] = trace_id
    return response


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions (persistence failures included)."""
    trace_id = get_trace_id() or get_trace_id_from_context()

    record_exception(exc)
    set_span_status(StatusCode.ERROR, str(exc))

    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    response = JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "status_code": 500,
            "trace_id": trace_id,
        }
    )
    if trace_id:
        response.headers["X-Trace-ID"] = trace_id
    return response


app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
app.include_router(ranking.router, prefix="/admin/ranking", tags=["Ranking"])
