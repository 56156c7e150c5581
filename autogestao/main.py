"""FastAPI application entrypoint.

Session routes are prefixed /v1 and scoped to the tenant resolved from
the request host. The integration REST surface lives under /api/v1 and is
scoped by API key. Uploaded media is served from settings.media_base_url.
Auto-generated OpenAPI docs at /docs.
"""

from contextlib import asynccontextmanager
import logging
import re
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from autogestao.api.v1.admin import router as admin_router
from autogestao.api.v1.api_keys import router as api_keys_router
from autogestao.api.v1.auth import router as auth_router
from autogestao.api.v1.images import router as images_router
from autogestao.api.v1.metrics import router as metrics_router
from autogestao.api.v1.rest import router as rest_router
from autogestao.api.v1.tenant import router as tenant_router
from autogestao.api.v1.vehicles import router as vehicles_router
from autogestao.api.v1.webhooks import router as webhooks_router
from autogestao.core.config import settings
from autogestao.core.exceptions import AutogestaoError
from autogestao.db.postgres import close_postgres


def _configure_logging() -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


_configure_logging()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # --- Startup ---
    logger.info(
        "app_startup",
        env=settings.app_env,
        app_domain=settings.app_domain,
        tenant_resolution=settings.tenant_resolution,
    )
    yield

    # --- Shutdown ---
    logger.info("app_shutdown")
    await close_postgres()


app = FastAPI(
    title="Autogestao Dealership API",
    description="Multi-tenant car dealership backend. One subdomain per store.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS: permissive for development, store subdomains in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if not settings.is_production else [],
    allow_origin_regex=(
        rf"https://([a-z0-9-]+\.)?{re.escape(settings.app_domain)}"
        if settings.is_production
        else None
    ),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AutogestaoError)
async def autogestao_error_handler(
    request: Request, exc: AutogestaoError
) -> JSONResponse:
    """Structured error response for all Autogestao exceptions."""
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, code=exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


# Session surface
app.include_router(tenant_router, prefix="/v1")
app.include_router(vehicles_router, prefix="/v1")
app.include_router(images_router, prefix="/v1")
app.include_router(metrics_router, prefix="/v1")
app.include_router(api_keys_router, prefix="/v1")
app.include_router(webhooks_router, prefix="/v1")
app.include_router(auth_router, prefix="/v1")
app.include_router(admin_router, prefix="/v1")

# Integration REST surface
app.include_router(rest_router, prefix="/api/v1")

app.mount(
    settings.media_base_url,
    StaticFiles(directory=settings.media_root, check_dir=False),
    name="media",
)
