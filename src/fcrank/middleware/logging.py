# src/fcrank/middleware/logging.py

"""Request/response logging middleware for the FC Rank API."""

import logging
import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("fcrank.api")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request and its outcome with a short correlation ID.

    A caller-supplied ``X-Request-ID`` is reused; otherwise one is
    generated. The ID is echoed back on the response. Requests that end
    in an upstream-facing status (502/503) are logged as warnings so
    upstream outages stand out from ordinary traffic.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        started = time.perf_counter()
        client_host = request.client.host if request.client else "unknown"

        logger.info(
            "[%s] %s %s%s",
            request_id,
            request.method,
            request.url.path,
            f"?{request.query_params}" if request.query_params else "",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": client_host,
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "[%s] %s %s -> ERROR (%.2fms): %s",
                request_id,
                request.method,
                request.url.path,
                _elapsed_ms(started),
                e,
                extra={"request_id": request_id, "error": str(e)},
                exc_info=True,
            )
            raise

        elapsed = _elapsed_ms(started)
        level = logging.WARNING if response.status_code in (502, 503) else logging.INFO
        logger.log(
            level,
            "[%s] %s %s -> %d (%.2fms)",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": round(elapsed, 2),
            },
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response  # type: ignore[no-any-return]


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
