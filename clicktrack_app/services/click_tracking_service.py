import asyncio
import logging
from typing import Optional

from clicktrack_app.exceptions import ConfigMissing, InvalidInput, StoreError
from clicktrack_app.storage.strategies import ClickStorageStrategy
from clicktrack_app.tracking.click_id_factory import ClickIdFactory
from clicktrack_app.tracking.click_id_strategies import ClickIdStrategy
from clicktrack_app.tracking.enrichment import (
    classify_user_agent,
    extract_referrer_domain,
    extract_utm,
    lookup_location,
)
from clicktrack_app.tracking.models import URL_TYPES, ClickEvent, RequestMetadata, ShortUrlRef, TrackResult
from clicktrack_app.tracking.telemetry import IngestTelemetry


logger = logging.getLogger(__name__)


class ClickTrackingService:
    """
    Ingestion service: one redirect click in, one ClickEvent in ClickHouse out.

    Fire-and-forget contract:
    - track_click() never raises, it returns True/False
    - every outcome is logged and recorded in the telemetry sink
    - a down or unconfigured analytics store never breaks a redirect

    Dependencies are injected (storage, telemetry, id strategy), so the
    service has no ambient configuration of its own.
    """

    def __init__(
        self,
        storage: ClickStorageStrategy,
        telemetry: Optional[IngestTelemetry] = None,
        id_strategy: Optional[ClickIdStrategy] = None
    ):
        """
        Initialize click tracking service with dependencies.

        Args:
            storage: Click storage strategy (ClickHouse or disabled)
            telemetry: Sink for ingestion outcomes
            id_strategy: Click id generator (default: timestamp + random)
        """
        self.storage = storage
        self.telemetry = telemetry or IngestTelemetry()
        self.id_strategy = id_strategy or ClickIdFactory.create_strategy()

    def build_event(
        self,
        short_url: ShortUrlRef,
        url_type: str,
        redirected_to_url: str,
        request: RequestMetadata,
        user_id: Optional[int] = None,
        visitor_id: Optional[str] = None
    ) -> ClickEvent:
        """
        Enrich request metadata into a ClickEvent.

        Raises:
            InvalidInput: If url_type or redirected_to_url is invalid
        """
        if url_type not in URL_TYPES:
            raise InvalidInput(f"Invalid url_type: {url_type!r}")
        if not redirected_to_url or not redirected_to_url.strip():
            raise InvalidInput("redirected_url is required")

        user_agent = request.user_agent or "Unknown"
        ua_info = classify_user_agent(user_agent)
        utm = extract_utm(request.query_params)
        location = lookup_location(request.ip_address)

        return ClickEvent(
            id=self.id_strategy.next_id(),
            short_url_id=short_url.id,
            tracking_id=short_url.tracking_id,
            short_uri=short_url.short_uri,
            redirected_to_url=redirected_to_url,
            url_type=url_type,
            user_id=user_id,
            session_id=visitor_id or request.session_id,
            user_agent=user_agent,
            browser=ua_info.browser,
            browser_version=ua_info.browser_version,
            device_type=ua_info.device_type,
            os=ua_info.os,
            os_version=ua_info.os_version,
            ip_address=request.ip_address,
            country=location.country,
            city=location.city,
            region=location.region,
            referrer=request.referrer or None,
            referrer_domain=extract_referrer_domain(request.referrer),
            utm_source=utm.source,
            utm_medium=utm.medium,
            utm_campaign=utm.campaign,
            utm_term=utm.term,
            utm_content=utm.content,
        )

    async def track(
        self,
        short_url: ShortUrlRef,
        url_type: str,
        redirected_to_url: str,
        request: RequestMetadata,
        user_id: Optional[int] = None,
        visitor_id: Optional[str] = None
    ) -> TrackResult:
        """
        Persist one click event and report the outcome.

        Flow:
        1. Validate url_type / redirected_to_url, generate id, enrich
        2. Fail fast if the analytics store is not configured
        3. INSERT into ClickHouse (blocking HTTP call, run in a worker thread)

        Invalid input is rejected before any store call.

        Never raises.
        """
        short_uri = getattr(short_url, "short_uri", None)

        try:
            # Step 1: Validate and enrich (no I/O)
            event = self.build_event(
                short_url, url_type, redirected_to_url, request,
                user_id=user_id, visitor_id=visitor_id
            )

            # Step 2: Fail fast on missing config
            if not self.storage.is_configured:
                raise ConfigMissing()

            # Step 3: Ship the event
            await asyncio.to_thread(self.storage.store_click, event)
            result = TrackResult(success=True, event_id=event.id)
            logger.info("✓ Click tracked for %s (id=%s, url_type=%s)", short_uri, event.id, url_type)

        except InvalidInput as e:
            logger.error("Click tracking rejected for %s: %s", short_uri, e)
            result = TrackResult(success=False, error=str(e), reason="invalid_input")
        except ConfigMissing as e:
            logger.error("Click tracking skipped for %s: %s", short_uri, e)
            result = TrackResult(success=False, error=str(e), reason="config_missing")
        except StoreError as e:
            logger.error("✗ ClickHouse click tracking failed for %s: %s", short_uri, e)
            result = TrackResult(success=False, error=str(e), reason="store_error")
        except Exception as e:
            logger.exception("Unexpected click tracking failure for %s", short_uri)
            result = TrackResult(success=False, error=str(e), reason="unexpected")

        self.telemetry.record(result)
        return result

    async def track_click(
        self,
        short_url: ShortUrlRef,
        url_type: str,
        redirected_to_url: str,
        request: RequestMetadata,
        user_id: Optional[int] = None,
        visitor_id: Optional[str] = None
    ) -> bool:
        """Track a click, returning True only when the store accepted it"""
        result = await self.track(
            short_url, url_type, redirected_to_url, request,
            user_id=user_id, visitor_id=visitor_id
        )
        return result.success
