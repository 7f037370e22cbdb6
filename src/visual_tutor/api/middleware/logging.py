"""
Request logging middleware.

Logs every HTTP request with its status and duration, and stamps the
response with ``X-Request-ID`` and ``X-Process-Time``.
"""

import logging
import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each request once on completion (or failure).

    A request ID is taken from the ``x-request-id`` header when the
    caller supplies one, otherwise a new one is generated.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        logger_instance: logging.Logger | None = None,
        skip_paths: set[str] | None = None,
    ) -> None:
        super().__init__(app)
        self._logger = logger_instance or logger
        self._skip_paths = skip_paths if skip_paths is not None else {"/health"}

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in self._skip_paths:
            return await call_next(request)

        start_time = time.time()
        method = request.method
        path = request.url.path
        client_ip = self._get_client_ip(request)
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._logger.error(
                "Request failed",
                extra={
                    "event": "request_failed",
                    "method": method,
                    "path": path,
                    "client_ip": client_ip,
                    "request_id": request_id,
                    "error": str(e),
                    "duration_ms": round(duration_ms, 2),
                },
                exc_info=True,
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        self._logger.info(
            f"{method} {path} {response.status_code}",
            extra={
                "event": "request_completed",
                "method": method,
                "path": path,
                "client_ip": client_ip,
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"
        response.headers["X-Request-ID"] = request_id
        return response

    def _get_client_ip(self, request: Request) -> str:
        """Client address, honouring proxy headers."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"
