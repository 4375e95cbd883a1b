"""structlog setup and per-request access logging."""

import logging
import sys
import time
import uuid
from collections.abc import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.types import Processor

from app.config import settings

REQUEST_ID_HEADER = "X-Request-ID"


def _renderer() -> Processor:
    if settings.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging() -> None:
    """
    Route structlog through stdlib logging at ``LOG_LEVEL``.

    Events carry the bound ``request_id``, the logger name, the level and an
    ISO timestamp, rendered as JSON or for the console per ``LOG_FORMAT``.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(),
        ],
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
    # Statement logging only with DEBUG
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log for every request, correlated by a request id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Bind a request id for the duration of the call and log its outcome.

        The id is taken from ``X-Request-ID`` when the client sends one and is
        echoed back together with ``X-Process-Time``.
        """
        logger = structlog.get_logger()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        logger.info(
            "request_started",
            client=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration=time.perf_counter() - started,
            )
            raise

        elapsed = time.perf_counter() - started
        logger.info("request_completed", status_code=response.status_code, duration=elapsed)

        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
