import asyncio

from fastapi import APIRouter, Depends, HTTPException, Query, status

from clicktrack_app.config import settings
from clicktrack_app.dependencies import get_short_url_service, get_stats_service
from clicktrack_app.exceptions import InvalidInput, ShortUriUnavailable
from clicktrack_app.schemas.short_url import (
    AvailabilityRequest,
    AvailabilityResponse,
    ShortUrlCreate,
    ShortUrlCreated,
    ShortUrlResponse,
)
from clicktrack_app.schemas.stats import ShortUrlStatsResponse, StatsReport
from clicktrack_app.services.short_url_service import ShortUrlService
from clicktrack_app.services.stats_service import StatsService

router = APIRouter(prefix="/short-urls", tags=["short-urls"])


@router.post("/", response_model=ShortUrlCreated, status_code=status.HTTP_201_CREATED)
def create_short_url(
    data: ShortUrlCreate,
    short_url_service: ShortUrlService = Depends(get_short_url_service)
):
    """Create a new short URL with one or two destinations"""
    try:
        short_url, warnings = short_url_service.create_short_url(data)
    except ShortUriUnavailable as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.reason)
    except InvalidInput as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.reason)

    response = ShortUrlCreated.model_validate(short_url)
    response.warnings = warnings
    return response


@router.post("/check-availability", response_model=AvailabilityResponse)
def check_availability(
    data: AvailabilityRequest,
    short_url_service: ShortUrlService = Depends(get_short_url_service)
):
    """Check whether a custom short code is free"""
    available, message = short_url_service.check_availability(data.short_uri)
    return AvailabilityResponse(available=available, message=message)


@router.get("/{short_url_id}", response_model=ShortUrlResponse)
def get_short_url(
    short_url_id: int,
    short_url_service: ShortUrlService = Depends(get_short_url_service)
):
    short_url = short_url_service.get_by_id(short_url_id)
    if not short_url:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Short URL not found"
        )
    return short_url


@router.get("/{short_url_id}/stats", response_model=ShortUrlStatsResponse)
async def get_short_url_stats(
    short_url_id: int,
    days: int = Query(30, ge=1, le=3650, description="Window for clicks_over_time and hourly_pattern"),
    short_url_service: ShortUrlService = Depends(get_short_url_service),
    stats_service: StatsService = Depends(get_stats_service)
):
    """
    Get click statistics for a short URL.

    Metrics that fail to load come back empty instead of failing the
    request. Recent clicks are capped at 50.
    """
    short_url = short_url_service.get_by_id(short_url_id)
    if not short_url:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Short URL not found"
        )

    stats, recent = await asyncio.gather(
        stats_service.comprehensive_stats(short_url.id, days=days),
        stats_service.recent_clicks(short_url.id, limit=settings.recent_clicks_limit),
    )

    return ShortUrlStatsResponse(
        short_url_id=short_url.id,
        short_uri=short_url.short_uri,
        click_count=short_url.click_count,
        days=days,
        stats=StatsReport(**stats),
        recent_clicks=recent,
    )


@router.delete("/{short_url_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_short_url(
    short_url_id: int,
    short_url_service: ShortUrlService = Depends(get_short_url_service)
):
    """Delete a short URL (its click events stay in ClickHouse)"""
    if not short_url_service.delete_short_url(short_url_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Short URL not found"
        )
