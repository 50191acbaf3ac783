import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("hapa.access")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Ensures every request has a request-id, placed into response headers,
    and writes one access log line per request.
    Uses configured header name (default X-Request-Id).
    """

    def __init__(self, app, header_name: str = "X-Request-Id"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = rid

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 1)

        response.headers[self.header_name] = rid
        logger.info(
            "%s %s -> %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                "request_id": rid,
                "status": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
