from __future__ import annotations

import math
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from hapa.core.rate_limit import check_rate_limit, get_client_identifier, get_limiter

FORM_PATHS = {
    "/media-forms/submit",
    "/media-forms/submit-with-files",
    "/contact/submit",
    "/feedback",
}

UPLOAD_PATHS = {
    "/form-media/upload",
    "/media/upload",
}

AUTH_PATHS = {"/auth/login"}


def limiter_for(method: str, path: str, api_prefix: str) -> Optional[str]:
    if not path.startswith(api_prefix):
        return None

    sub = path[len(api_prefix):] or "/"
    if sub == "/health":
        return None

    if method == "POST":
        if sub in FORM_PATHS:
            return "form_submission"
        if sub in UPLOAD_PATHS:
            return "file_upload"
        if sub in AUTH_PATHS:
            return "auth"
    return "api"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies the named fixed-window limiters to API paths, keyed by client IP.
    Public form posts, uploads and login get their own tighter limiters;
    everything else under the API prefix shares the general one.
    """

    def __init__(self, app, api_prefix: str = "/api"):
        super().__init__(app)
        self.api_prefix = api_prefix.rstrip("/")

    async def dispatch(self, request: Request, call_next):
        name = limiter_for(request.method.upper(), request.url.path, self.api_prefix)
        if name is None:
            return await call_next(request)

        identifier = get_client_identifier(request)
        result = check_rate_limit(identifier, name)

        headers = {
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(math.ceil(result.reset_at)),
        }

        if not result.allowed:
            headers["Retry-After"] = str(result.retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": "Too many requests. Please try again later.",
                    "retryAfter": result.retry_after,
                },
                headers=headers,
            )

        response = await call_next(request)
        get_limiter(name).record_result(identifier, response.status_code < 400)

        for k, v in headers.items():
            response.headers[k] = v
        return response
