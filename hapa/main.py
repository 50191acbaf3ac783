import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hapa.api.v1.router import v1_router
from hapa.core.config import get_settings
from hapa.core.errors import EmailDeliveryError, FileValidationError, HapaError, NotFoundError, StorageError
from hapa.core.logging import configure_logging
from hapa.core.middleware import RequestIdMiddleware
from hapa.core.middleware_rate_limit import RateLimitMiddleware
from hapa.core.rate_limit import purge_loop
from hapa.web.pages import router as pages_router

logger = logging.getLogger("hapa")

# error class -> (status, client message); the exception text only goes to the log
ERROR_RESPONSES = (
    (NotFoundError, 404, "Not found"),
    (FileValidationError, 400, "Invalid file"),
    (StorageError, 502, "Service unavailable"),
    (EmailDeliveryError, 502, "Service unavailable"),
)


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    purger = asyncio.create_task(purge_loop(settings.rate_limit_purge_seconds))
    logger.info("[startup] %s (%s)", settings.app_name, settings.environment)
    try:
        yield
    finally:
        purger.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purger


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware: rate limit inside, request id outermost
    app.add_middleware(RateLimitMiddleware, api_prefix=settings.api_prefix)
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        # field errors stay in the logs
        logger.info(
            "[validation] %s %s rejected",
            request.method,
            request.url.path,
            extra={"request_id": _request_id(request), "errors": len(exc.errors())},
        )
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request data"})

    @app.exception_handler(HapaError)
    async def domain_error(request: Request, exc: HapaError):
        status, message = next(
            ((code, msg) for cls, code, msg in ERROR_RESPONSES if isinstance(exc, cls)),
            (500, "Internal server error"),
        )
        logger.warning(
            "[error] %s: %s",
            type(exc).__name__,
            exc,
            extra={"request_id": _request_id(request), "status": status},
        )
        return JSONResponse(status_code=status, content={"success": False, "error": message})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception(
            "[error] unhandled on %s %s",
            request.method,
            request.url.path,
            extra={"request_id": _request_id(request)},
        )
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})

    # API v1
    app.include_router(v1_router, prefix=settings.api_prefix)

    # Public site
    app.include_router(pages_router)

    return app


app = create_app()
