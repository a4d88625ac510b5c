import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from clicktrack_app.config import settings
from clicktrack_app.dependencies import get_click_tracking_service, get_short_url_service
from clicktrack_app.schemas.tracking import TrackClickResponse
from clicktrack_app.services.click_tracking_service import ClickTrackingService
from clicktrack_app.services.short_url_service import ShortUrlService
from clicktrack_app.tracking.models import URL_TYPES, RequestMetadata, ShortUrlRef

logger = logging.getLogger(__name__)

router = APIRouter(tags=["redirect"])


def _failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=TrackClickResponse(success=False, error=error).model_dump(exclude_none=True)
    )


async def _read_payload(request: Request) -> Dict[str, Any]:
    """
    Read the beacon payload from a JSON or form-encoded body.

    Raises:
        ValueError: If a JSON body is malformed or not valid UTF-8
        MultiPartException, StarletteHTTPException: If a form body can't be parsed
    """
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        body = await request.body()
        return json.loads(body or b"null")

    # Form posts may also carry parameters on the query string
    payload: Dict[str, Any] = dict(request.query_params)
    form = await request.form()
    payload.update({key: value for key, value in form.items() if isinstance(value, str)})
    return payload


@router.get("/{short_uri}")
async def redirect_short_url(
    short_uri: str,
    request: Request,
    background_tasks: BackgroundTasks,
    to: str = Query("url1", description="Which destination to follow: url1 or url2"),
    short_url_service: ShortUrlService = Depends(get_short_url_service),
    tracking_service: ClickTrackingService = Depends(get_click_tracking_service)
):
    """
    Redirect to one of the short URL's destinations.

    Flow:
    1. Look up the short URL (404 if unknown)
    2. Bump click_count in the registry
    3. Schedule click tracking as a background task
    4. Redirect immediately

    Tracking runs after the response is sent and never raises, so the
    redirect doesn't wait on ClickHouse and can't be broken by it.
    """
    short_url = short_url_service.get_by_short_uri(short_uri)
    if not short_url:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Short URL not found"
        )

    short_url_service.increment_click_count(short_url)

    url_type = "url2" if to == "url2" and short_url.url2 else "url1"
    destination = short_url.destination(url_type)

    if settings.track_on_redirect:
        background_tasks.add_task(
            tracking_service.track_click,
            ShortUrlRef.from_model(short_url),
            url_type,
            destination,
            RequestMetadata.from_request(request, settings.session_cookie_name),
            user_id=short_url.user_id,
        )

    return RedirectResponse(url=destination, status_code=status.HTTP_302_FOUND)


@router.post("/{short_uri}/track", response_model=TrackClickResponse, response_model_exclude_none=True)
async def track_click(
    short_uri: str,
    request: Request,
    short_url_service: ShortUrlService = Depends(get_short_url_service),
    tracking_service: ClickTrackingService = Depends(get_click_tracking_service)
):
    """
    Click-tracking beacon.

    Accepts JSON or form data with url_type (url1/url2), redirected_url
    and an optional visitor_id, and writes one click event.
    """
    short_url = short_url_service.get_by_short_uri(short_uri)
    if not short_url:
        logger.error("Track click: Short URL not found: %s", short_uri)
        return _failure(status.HTTP_404_NOT_FOUND, "Short URL not found")

    try:
        payload = await _read_payload(request)
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError
        logger.error("Track click: JSON parse error: %s", e)
        return _failure(status.HTTP_400_BAD_REQUEST, "Invalid JSON")
    except (MultiPartException, StarletteHTTPException) as e:
        logger.error("Track click: form parse error: %s", e)
        return _failure(status.HTTP_400_BAD_REQUEST, "Invalid form data")

    try:
        if not isinstance(payload, dict):
            payload = {}

        url_type = payload.get("url_type")
        redirected_url = payload.get("redirected_url")
        visitor_id = payload.get("visitor_id")

        logger.info(
            "Track click attempt: short_uri=%s, url_type=%s, visitor_id=%s",
            short_uri, url_type, visitor_id
        )

        valid_url = isinstance(redirected_url, str) and redirected_url.strip()
        if url_type not in URL_TYPES or not valid_url:
            logger.error("Invalid parameters: url_type=%s, redirected_url=%s", url_type, redirected_url)
            return _failure(status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid parameters")

        tracked = await tracking_service.track_click(
            ShortUrlRef.from_model(short_url),
            url_type,
            redirected_url,
            RequestMetadata.from_request(request, settings.session_cookie_name),
            user_id=short_url.user_id,
            visitor_id=str(visitor_id) if visitor_id else None,
        )

        if not tracked:
            logger.error("✗ ClickHouse tracking failed for %s", short_uri)
            return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Tracking failed")

        return TrackClickResponse(success=True, message="Click tracked successfully")

    except Exception:
        logger.exception("Track click error for %s", short_uri)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
