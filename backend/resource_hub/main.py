from contextlib import asynccontextmanager
from datetime import timedelta
import logging

import httpx
import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from resource_hub.core.config import settings
from resource_hub.core.limiter import limiter
from resource_hub.core.logging import setup_logging
from resource_hub.imports.catalog import CatalogRegistry
from resource_hub.imports.session import SessionStore

setup_logging()

logger = logging.getLogger(__name__)

# Initialize Sentry error monitoring
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        environment=getattr(settings, 'APP_ENV', 'development'),
        send_default_pii=False,
    )
    logger.info("Sentry initialized")


def _build_catalogs() -> CatalogRegistry:
    registry = CatalogRegistry()
    if settings.CATALOG_PATH:
        try:
            registry.load_file(settings.CATALOG_PATH)
        except (OSError, ValueError) as exc:
            logger.warning("Catalog override %s not loaded, using built-in catalogs: %s", settings.CATALOG_PATH, exc)
    return registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: shared HTTP client for the resource store
    app.state.http_client = httpx.AsyncClient(timeout=settings.RESOURCE_API_TIMEOUT_SECONDS)
    yield
    # Shutdown
    await app.state.http_client.aclose()


app = FastAPI(
    title="Resource Hub Import Service",
    version="0.1.0",
    docs_url="/api/docs" if settings.APP_ENV != "production" else None,
    redoc_url="/api/redoc" if settings.APP_ENV != "production" else None,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.state.catalogs = _build_catalogs()
app.state.import_sessions = SessionStore(ttl=timedelta(minutes=settings.IMPORT_SESSION_TTL_MINUTES))
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


# ─── Routers ───
from resource_hub.api.v1.router import api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "env": settings.APP_ENV}
