"""
Middleware for trace ID propagation and request context management.

This middleware:
- Extracts trace ID from HTTP headers (X-Trace-ID or X-Request-ID)
- Generates new trace ID if not present
- Binds the acting user (X-User-ID) for audit and log correlation
- Includes trace ID and request ID in HTTP response headers
- Records RED metrics for every request
"""
import time
from typing import Callable

from fastapi import Request, Response, HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import (
    set_trace_id,
    set_request_id,
    set_user_id,
    generate_trace_id,
    generate_request_id,
    get_logger,
)
from .metrics import record_http_request
from .tracing import (
    get_trace_id_from_context,
    set_span_attribute,
    record_exception,
    set_span_status,
    StatusCode,
)

logger = get_logger(__name__)


def _format_otel_trace_id(otel_trace_id: str) -> str:
    """Convert a 32-char hex trace ID to UUID format for consistency."""
    if len(otel_trace_id) != 32:
        return otel_trace_id
    return (
        f"{otel_trace_id[0:8]}-{otel_trace_id[8:12]}-{otel_trace_id[12:16]}-"
        f"{otel_trace_id[16:20]}-{otel_trace_id[20:32]}"
    )


class TraceIDMiddleware(BaseHTTPMiddleware):
    """
    Handle trace ID propagation and request context.

    Priority for the trace ID: X-Trace-ID > X-Request-ID > OpenTelemetry
    context > newly generated.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = (
            request.headers.get("X-Trace-ID") or
            request.headers.get("X-Request-ID")
        )
        if not trace_id:
            otel_trace_id = get_trace_id_from_context()
            trace_id = _format_otel_trace_id(otel_trace_id) if otel_trace_id else generate_trace_id()

        request_id = generate_request_id()
        user_id = request.headers.get("X-User-ID")

        set_trace_id(trace_id)
        set_request_id(request_id)
        if user_id:
            set_user_id(user_id)

        set_span_attribute("http.method", request.method)
        set_span_attribute("http.route", request.url.path)
        if user_id:
            set_span_attribute("user.id", user_id)

        start_time = time.time()
        request.state.start_time = start_time
        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            query_params=dict(request.query_params),
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            process_time = time.time() - start_time
            latency_ms = int(process_time * 1000)
            set_span_attribute("http.status_code", response.status_code)

            record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status_code=response.status_code,
                duration_seconds=process_time,
            )

            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                latency_ms=latency_ms,
            )

            response.headers["X-Trace-ID"] = trace_id
            response.headers["X-Request-ID"] = request_id
            return response

        except HTTPException:
            # Handled (and measured) by the HTTPException handler
            raise
        except Exception as e:
            process_time = time.time() - start_time
            record_exception(e)
            set_span_status(StatusCode.ERROR, str(e))

            record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status_code=500,
                duration_seconds=process_time,
            )

            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                error_type=type(e).__name__,
                latency_ms=int(process_time * 1000),
                exc_info=True,
            )
            raise
        finally:
            set_trace_id(None)
            set_request_id(None)
            set_user_id(None)
