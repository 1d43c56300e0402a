"""
Request/response logging middleware for tracking API interactions.
"""
import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from typing import Callable, Iterable, Optional

from app.core.config import settings
from app.core.logging_config import request_id_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _default_quiet_paths() -> tuple:
    # Liveness probes would otherwise dominate the logs
    prefix = settings.API_V1_PREFIX
    return (f"{prefix}/health", f"{prefix}/ping")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log incoming requests and outgoing responses.

    Each request gets a correlation ID, taken from the ``X-Request-ID``
    header when the client sends one. The ID is stored in
    ``request_id_context`` for the log formatter and echoed back on the
    response.
    """

    def __init__(self, app, quiet_paths: Optional[Iterable[str]] = None):
        """
        Initialize request logging middleware.

        Args:
            app: FastAPI application
            quiet_paths: Paths whose successful requests are logged at DEBUG
        """
        super().__init__(app)
        self.quiet_paths = frozenset(
            _default_quiet_paths() if quiet_paths is None else quiet_paths
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and log details.

        Args:
            request: Incoming request
            call_next: Next middleware/endpoint in chain

        Returns:
            Response from the endpoint
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_context.set(request_id)

        start_time = time.perf_counter()
        method = request.method
        path = str(request.url.path)
        client_host = request.client.host if request.client else "unknown"
        quiet = path in self.quiet_paths

        try:
            logger.log(
                logging.DEBUG if quiet else logging.INFO,
                "Incoming request",
                extra={"method": method, "path": path, "client_host": client_host},
            )

            response = await call_next(request)

            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id

            extra_fields = {
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
                "client_host": client_host,
            }

            if status_code >= 500:
                logger.error("Server error response", extra=extra_fields)
            elif status_code >= 400:
                logger.warning("Client error response", extra=extra_fields)
            elif quiet:
                logger.debug("Request completed", extra=extra_fields)
            else:
                logger.info("Request completed", extra=extra_fields)

            return response
        finally:
            request_id_context.reset(token)
