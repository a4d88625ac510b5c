"""
Test click ingestion: enrichment, validation and fire-and-forget failure handling.
"""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from clicktrack_app.exceptions import InvalidInput
from clicktrack_app.services.click_tracking_service import ClickTrackingService
from clicktrack_app.storage.strategies import DisabledClickStorage
from clicktrack_app.tracking.click_id_strategies import TimestampRandomClickIdStrategy
from clicktrack_app.tracking.models import RequestMetadata, ShortUrlRef

CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

SHORT_URL = ShortUrlRef(id=42, tracking_id="00c8328e409c4831e4aba4f65ec3a0c1", short_uri="abc12")


@pytest.fixture
def service(click_storage, telemetry):
    return ClickTrackingService(
        storage=click_storage,
        telemetry=telemetry,
        id_strategy=TimestampRandomClickIdStrategy(clock=lambda: 1735787045.0),
    )


def chrome_request(**overrides) -> RequestMetadata:
    fields = dict(user_agent=CHROME_UA, ip_address="203.0.113.5")
    fields.update(overrides)
    return RequestMetadata(**fields)


def track(service, url_type="url1", redirected_url="https://example.com/page", request=None, **kwargs):
    return asyncio.run(service.track_click(
        SHORT_URL, url_type, redirected_url, request or chrome_request(), **kwargs
    ))


class TestBuildEvent:

    def test_enriches_request(self, service):
        request = chrome_request(
            referrer="https://twitter.com/someone/status/1",
            query_params={"utm_source": "newsletter", "utm_campaign": "spring"},
            session_id="cookie-session",
        )

        event = service.build_event(SHORT_URL, "url2", "https://example.com/b", request, user_id=7)

        assert event.short_url_id == 42
        assert event.tracking_id == SHORT_URL.tracking_id
        assert event.short_uri == "abc12"
        assert event.url_type == "url2"
        assert event.redirected_to_url == "https://example.com/b"
        assert event.user_id == 7
        assert event.session_id == "cookie-session"
        assert event.browser == "Chrome"
        assert event.os == "Windows"
        assert event.device_type == "desktop"
        assert event.ip_address == "203.0.113.5"
        assert event.referrer_domain == "twitter.com"
        assert event.utm_source == "newsletter"
        assert event.utm_campaign == "spring"
        assert event.utm_medium is None
        assert (event.country, event.city, event.region) == ("", "", "")

    def test_id_layout(self, service):
        event = service.build_event(SHORT_URL, "url1", "https://example.com/page", chrome_request())
        assert event.id // 1000 == 1735787045

    def test_visitor_id_wins_over_cookie(self, service):
        request = chrome_request(session_id="cookie-session")
        event = service.build_event(
            SHORT_URL, "url1", "https://example.com/page", request, visitor_id="beacon-visitor"
        )
        assert event.session_id == "beacon-visitor"

    def test_missing_user_agent(self, service):
        event = service.build_event(
            SHORT_URL, "url1", "https://example.com/page", RequestMetadata(ip_address="203.0.113.5")
        )
        assert event.user_agent == "Unknown"
        assert event.browser == "Unknown"
        assert event.device_type == "desktop"

    def test_clicked_at_is_whole_seconds(self, service):
        event = service.build_event(SHORT_URL, "url1", "https://example.com/page", chrome_request())
        assert event.clicked_at.microsecond == 0

    @pytest.mark.parametrize("url_type", ["url3", "", None, "URL1"])
    def test_rejects_bad_url_type(self, service, url_type):
        with pytest.raises(InvalidInput):
            service.build_event(SHORT_URL, url_type, "https://example.com/page", chrome_request())

    @pytest.mark.parametrize("redirected_url", ["", "   ", None])
    def test_rejects_blank_redirected_url(self, service, redirected_url):
        with pytest.raises(InvalidInput):
            service.build_event(SHORT_URL, "url1", redirected_url, chrome_request())


class TestTrackClick:

    def test_successful_click(self, service, fake_clickhouse, telemetry):
        """Chrome/Windows click on abc12 without UTM becomes one INSERT"""
        assert track(service) is True

        assert len(fake_clickhouse.inserts) == 1
        insert = fake_clickhouse.inserts[0]
        assert "'abc12'" in insert
        assert "'url1'" in insert
        assert "'https://example.com/page'" in insert
        assert "'Chrome'" in insert
        assert "'Windows'" in insert
        assert "'desktop'" in insert
        # referrer, referrer_domain and all five utm columns are NULL
        assert "NULL, NULL, NULL, NULL, NULL, NULL, NULL, '" in insert

        assert telemetry.snapshot()["succeeded"] == 1

    def test_track_returns_event_id(self, service):
        result = asyncio.run(service.track(
            SHORT_URL, "url1", "https://example.com/page", chrome_request()
        ))
        assert result.success is True
        assert result.event_id // 1000 == 1735787045
        assert result.reason is None

    def test_invalid_url_type_never_reaches_store(self, service, fake_clickhouse, telemetry):
        assert track(service, url_type="url3") is False

        assert fake_clickhouse.calls == []
        snapshot = telemetry.snapshot()
        assert snapshot["failed_by_reason"] == {"invalid_input": 1}
        assert "url3" in snapshot["last_error"]

    def test_missing_redirected_url(self, service, fake_clickhouse):
        assert track(service, redirected_url="") is False
        assert fake_clickhouse.calls == []

    def test_missing_config(self, telemetry):
        service = ClickTrackingService(storage=DisabledClickStorage(), telemetry=telemetry)

        assert track(service) is False
        snapshot = telemetry.snapshot()
        assert snapshot["failed_by_reason"] == {"config_missing": 1}
        assert snapshot["last_error"] == "ClickHouse config not available"

    def test_store_rejects_insert(self, service, fake_clickhouse, telemetry):
        fake_clickhouse.route(r"^INSERT", status_code=500, text="Code: 241. DB::Exception: Memory limit")

        assert track(service) is False
        snapshot = telemetry.snapshot()
        assert snapshot["failed_by_reason"] == {"store_error": 1}
        assert "Memory limit" in snapshot["last_error"]
        assert snapshot["last_error_at"] is not None

    def test_store_unreachable(self, service, fake_clickhouse, telemetry):
        fake_clickhouse.route(r".", exc=requests.ConnectionError("connection refused"))

        assert track(service) is False
        assert telemetry.snapshot()["failed_by_reason"] == {"store_error": 1}

    def test_unexpected_error_is_absorbed(self, telemetry):
        storage = MagicMock()
        storage.is_configured = True
        storage.store_click.side_effect = RuntimeError("boom")
        service = ClickTrackingService(storage=storage, telemetry=telemetry)

        assert track(service) is False
        assert telemetry.snapshot()["failed_by_reason"] == {"unexpected": 1}

    def test_counters_accumulate(self, service, fake_clickhouse, telemetry):
        track(service)
        track(service, url_type="url2", redirected_url="https://example.com/b")
        track(service, url_type="bogus")

        snapshot = telemetry.snapshot()
        assert snapshot["succeeded"] == 2
        assert snapshot["failed"] == 1
        assert len(fake_clickhouse.inserts) == 2

    def test_concurrent_clicks(self, service, fake_clickhouse):
        async def burst():
            return await asyncio.gather(*(
                service.track_click(SHORT_URL, "url1", "https://example.com/page", chrome_request())
                for _ in range(20)
            ))

        assert all(asyncio.run(burst()))
        assert len(fake_clickhouse.inserts) == 20
