"""
Request logging middleware with correlation ID support.

Each request gets an 8-character correlation ID that is bound to the
structlog context (so verifier events carry it too) and echoed back in the
X-Correlation-ID response header.

Never logged: client addresses, query strings, challenge credentials
headers, or request bodies (they carry the challenge and its answer).
"""

import secrets
import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_HEADER = "X-Correlation-ID"


def generate_correlation_id() -> str:
    """Generate an 8-character correlation ID."""
    return secrets.token_hex(4)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = generate_correlation_id()
        start = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        )
        logger = structlog.get_logger()
        logger.debug("request_started")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("request_failed", error=str(e), duration_ms=_elapsed_ms(start), exc_info=True)
            raise

        log = logger.warning if response.status_code in (401, 429) else logger.info
        log("request_completed", status_code=response.status_code, duration_ms=_elapsed_ms(start))

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
