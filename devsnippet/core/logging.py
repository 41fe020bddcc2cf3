"""
core/logging.py
---------------
structlog setup shared by the API and the maintenance scripts.

Output format:
  APP_ENV=production or DEBUG=false → one JSON object per line
  otherwise                         → coloured console output

Every line logged while a request is in flight carries request_id, method
and path, bound by RequestContextMiddleware through structlog.contextvars.
"""

import logging
import sys
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from devsnippet.core.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

# Chatty third-party loggers, muted to WARNING outside of DEBUG
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "urllib3")


def _wants_json() -> bool:
    return settings.APP_ENV == "production" or not settings.DEBUG


def configure_logging() -> None:
    level = logging.DEBUG if settings.DEBUG else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if not settings.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer()
        if _wants_json()
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__):
    return structlog.get_logger(name)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Binds a request id (taken from X-Request-ID or generated) into the
    structlog context for the lifetime of the request, echoes it on the
    response and logs one completion line per request.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            get_logger("devsnippet.request").info(
                "Request completed",
                status=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()
