"""Structured logging setup and per-request access logging."""

import logging
import sys
import time
from collections.abc import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from booking_api.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

# Probe and scrape endpoints are logged at debug level
QUIET_PATHS = frozenset({"/metrics", f"{settings.api_v1_prefix}/ping", f"{settings.api_v1_prefix}/health"})


def configure_logging() -> None:
    """Route structlog through stdlib logging with a JSON or console renderer."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

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
        level=getattr(logging, settings.log_level.upper()),
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Bind request context for every log line and record each request's outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Log the request, time it and tag the response.

        The incoming ``X-Request-ID`` is reused when present so a booking can
        be traced across services; otherwise one is generated.
        """
        logger = structlog.get_logger()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        started = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        log = logger.debug if request.url.path in QUIET_PATHS else logger.info

        log("request_started", client=request.client.host if request.client else None)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        duration = time.perf_counter() - started
        log("request_completed", status_code=response.status_code, duration_ms=round(duration * 1000, 2))

        response.headers["X-Process-Time"] = f"{duration:.6f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
