"""FastAPI app for serpharvest."""

from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from serpharvest.api.rate_limit import FixedWindowRateLimiter
from serpharvest.api.routes import router
from serpharvest.settings import get_settings

try:
    from importlib.metadata import version

    VERSION = version("serpharvest")
except Exception:
    VERSION = "0.0.0"

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    settings = get_settings()

    application = FastAPI(
        title="SERP Harvester",
        description="Human-paced search-results link harvesting and enrichment.",
        version=VERSION,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.state.rate_limiter = FixedWindowRateLimiter(
        settings.api.rate_limit_requests, settings.api.rate_limit_window_sec
    )
    application.add_exception_handler(StarletteHTTPException, _http_error)
    application.add_exception_handler(Exception, _unhandled_error)

    application.include_router(health_router)
    application.include_router(router, prefix=settings.api.prefix)
    return application
