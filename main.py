import logging

from fastapi import Depends, FastAPI
from clicktrack_app.config import settings
from clicktrack_app.database.connection import engine, Base
from clicktrack_app.api.v1 import short_urls, redirect
from clicktrack_app.dependencies import get_click_storage, get_ingest_telemetry
from clicktrack_app.exceptions import AnalyticsError
from clicktrack_app.storage.strategies import ClickStorageStrategy
from clicktrack_app.tracking.telemetry import IngestTelemetry

# Import models to ensure they're registered with Base
from clicktrack_app.models import ShortUrl

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger("clicktrack")

# Create database tables
Base.metadata.create_all(bind=engine)

# Optionally create the ClickHouse table (needs a configured store)
if settings.clickhouse_create_table_on_startup:
    try:
        get_click_storage().ensure_schema()
    except AnalyticsError as e:
        logger.error("ClickHouse table setup failed: %s", e)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Two-destination URL shortener with ClickHouse click analytics",
    debug=settings.debug
)


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
def health_check(
    storage: ClickStorageStrategy = Depends(get_click_storage),
    telemetry: IngestTelemetry = Depends(get_ingest_telemetry)
):
    """
    Health check endpoint with click ingestion counters.

    A configured but unreachable analytics store reports "degraded":
    redirects still work, clicks are dropped.
    """
    configured = storage.is_configured
    reachable = storage.ping() if configured else False
    return {
        "status": "degraded" if configured and not reachable else "healthy",
        "environment": settings.environment,
        "analytics_store_configured": configured,
        "analytics_store_reachable": reachable,
        "tracking": telemetry.snapshot(),
    }




######## Include routers
app.include_router(short_urls.router, prefix="/api/v1")
app.include_router(redirect.router)
