"""
Structured logging for the ranking service.

Events are snake_case names with keyword fields, e.g.
`logger.info("ranking_batch_committed", page=3, updated=300)`.

Each entry is stamped with:
- service: SERVICE_NAME
- timestamp: ISO 8601, UTC
- trace_id / request_id: set by TraceIDMiddleware for HTTP requests
- user_id: the acting admin (X-User-ID), also recorded on audit entries

Batch jobs run outside a request, so their entries carry no trace fields.
"""
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from structlog.types import Processor

trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

SERVICE_NAME = "storerank_ranking_api"

_CONTEXT_FIELDS = (
    ("trace_id", trace_id_var),
    ("request_id", request_id_var),
    ("user_id", user_id_var),
)


def add_trace_context(
    logger: structlog.BoundLogger,
    method_name: str,
    event_dict: Dict[str, Any],
) -> Dict[str, Any]:
    """structlog processor: copy request correlation ids and the service name onto the entry."""
    for field, var in _CONTEXT_FIELDS:
        value = var.get()
        if value:
            event_dict[field] = value

    event_dict["service"] = SERVICE_NAME
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    service_name: Optional[str] = None,
    json_output: bool = True,
) -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        log_level: Root level name (LOG_LEVEL)
        service_name: Overrides SERVICE_NAME, e.g. for the batch job
        json_output: JSON lines for containers; console rendering locally (LOG_JSON)
    """
    global SERVICE_NAME
    if service_name:
        SERVICE_NAME = service_name

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_trace_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    return structlog.get_logger(name)


# Request context. Passing None clears the value at the end of a request.

def set_trace_id(trace_id: Optional[str]) -> None:
    trace_id_var.set(trace_id)


def get_trace_id() -> Optional[str]:
    return trace_id_var.get()


def set_request_id(request_id: Optional[str]) -> None:
    request_id_var.set(request_id)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def set_user_id(user_id: Optional[str]) -> None:
    user_id_var.set(user_id)


def get_user_id() -> Optional[str]:
    """Acting admin for the current request, if the caller sent X-User-ID."""
    return user_id_var.get()


def generate_request_id() -> str:
    return str(uuid.uuid4())


def generate_trace_id() -> str:
    return str(uuid.uuid4())
