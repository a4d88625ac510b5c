"""
FastAPI dependencies for dependency injection.

This is the only place (besides main.py) that reads settings. Everything
below it receives explicit configuration: the analytics store config is
turned into a click storage once, and the services get it injected.

Pattern: Dependency Injection
- Loose coupling between components
- Easy to test (override get_click_storage with a fake)
- Flexible (missing ClickHouse config swaps in a disabled storage)
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from clicktrack_app.config import AnalyticsStoreConfig, settings
from clicktrack_app.database.connection import get_db
from clicktrack_app.services.click_tracking_service import ClickTrackingService
from clicktrack_app.services.short_url_service import ShortUrlService
from clicktrack_app.services.stats_service import StatsService
from clicktrack_app.storage.factory import ClickStorageFactory
from clicktrack_app.storage.strategies import ClickStorageStrategy
from clicktrack_app.tracking.click_id_factory import ClickIdFactory, ClickIdStrategyType
from clicktrack_app.tracking.click_id_strategies import ClickIdStrategy
from clicktrack_app.tracking.telemetry import IngestTelemetry


@lru_cache()
def get_store_config() -> Optional[AnalyticsStoreConfig]:
    """Analytics store config built once from settings (None if incomplete)"""
    return settings.analytics_store_config()


@lru_cache()
def get_click_storage() -> ClickStorageStrategy:
    """
    Get click storage instance (singleton).

    Returns:
        ClickHouse storage, or a disabled storage when config is missing
    """
    return ClickStorageFactory.create(get_store_config())


@lru_cache()
def get_ingest_telemetry() -> IngestTelemetry:
    """Process-wide sink for ingestion outcomes"""
    return IngestTelemetry()


@lru_cache()
def get_click_id_strategy() -> ClickIdStrategy:
    return ClickIdFactory.create_strategy(ClickIdStrategyType(settings.click_id_strategy))


def get_short_url_service(db: Session = Depends(get_db)) -> ShortUrlService:
    return ShortUrlService(
        db=db,
        short_uri_length=settings.short_uri_length,
        max_retries=settings.max_retries
    )


def get_click_tracking_service(
    storage: ClickStorageStrategy = Depends(get_click_storage),
    telemetry: IngestTelemetry = Depends(get_ingest_telemetry),
    id_strategy: ClickIdStrategy = Depends(get_click_id_strategy)
) -> ClickTrackingService:
    """
    Get ClickTrackingService with all dependencies injected.

    Built per request (cheap); the storage and telemetry it wraps are
    singletons.
    """
    return ClickTrackingService(storage=storage, telemetry=telemetry, id_strategy=id_strategy)


def get_stats_service(
    storage: ClickStorageStrategy = Depends(get_click_storage)
) -> StatsService:
    return StatsService(storage=storage)
