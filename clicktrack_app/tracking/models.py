"""
Data models for click tracking.
"""

from datetime import datetime, timezone
from typing import Dict, Literal, Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field, field_validator


URL_TYPES = ("url1", "url2")
UrlType = Literal["url1", "url2"]


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds"""
    return datetime.now(timezone.utc).replace(microsecond=0)


class UserAgentInfo(BaseModel):
    """Browser, OS and device attributes derived from a User-Agent"""

    browser: str = "Unknown"
    browser_version: str = ""
    os: str = "Unknown"
    os_version: str = ""
    device_type: str = "desktop"

    model_config = ConfigDict(frozen=True)


class UtmParams(BaseModel):
    """The five campaign tracking parameters, each optional"""

    source: Optional[str] = None
    medium: Optional[str] = None
    campaign: Optional[str] = None
    term: Optional[str] = None
    content: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class Location(BaseModel):
    """Geolocation fields (always empty until a provider is wired in)"""

    country: str = ""
    city: str = ""
    region: str = ""

    model_config = ConfigDict(frozen=True)


class ShortUrlRef(BaseModel):
    """
    The identifiers a click event copies from its short URL.

    A detached snapshot of the registry row, safe to hand to a
    background task after the database session is gone.
    """

    id: int
    tracking_id: str
    short_uri: str
    user_id: Optional[int] = None

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @classmethod
    def from_model(cls, short_url) -> "ShortUrlRef":
        return cls.model_validate(short_url)


class RequestMetadata(BaseModel):
    """
    The parts of an inbound request that click tracking needs.

    Captured up-front so tracking can run after the response has been
    sent (e.g. from a background task) without holding on to the request.
    """

    user_agent: Optional[str] = None
    ip_address: str = ""
    referrer: Optional[str] = None
    query_params: Dict[str, str] = Field(default_factory=dict)
    session_id: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request, session_cookie_name: str = "session_id") -> "RequestMetadata":
        from .enrichment import client_ip

        return cls(
            user_agent=request.headers.get("user-agent"),
            ip_address=client_ip(
                request.headers.get("x-forwarded-for"),
                request.client.host if request.client else None,
            ),
            referrer=request.headers.get("referer"),
            query_params=dict(request.query_params),
            session_id=request.cookies.get(session_cookie_name),
        )


class ClickEvent(BaseModel):
    """
    One immutable, enriched record of a redirect click.

    Written once to the url_clicks table and never updated. Field order
    matches the column order of the INSERT statement.
    """

    id: int = Field(..., ge=0, description="Time-based click id")
    short_url_id: int = Field(..., ge=0)
    tracking_id: str
    short_uri: str
    redirected_to_url: str
    url_type: UrlType

    user_id: Optional[int] = Field(None, ge=0)
    session_id: Optional[str] = None

    # User agent
    user_agent: str = "Unknown"
    browser: str = "Unknown"
    browser_version: str = ""
    device_type: str = "desktop"
    os: str = "Unknown"
    os_version: str = ""

    # Network
    ip_address: str = ""
    country: str = ""
    city: str = ""
    region: str = ""

    # Referrer
    referrer: Optional[str] = None
    referrer_domain: Optional[str] = None

    # Campaign
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None

    clicked_at: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": 1735689600123,
                "short_url_id": 42,
                "tracking_id": "00c8328e409c4831e4aba4f65ec3a0c1",
                "short_uri": "abc12",
                "redirected_to_url": "https://example.com/page",
                "url_type": "url1",
                "browser": "Chrome",
                "device_type": "desktop",
                "referrer_domain": "twitter.com",
                "clicked_at": "2025-01-01 00:00:00",
            }
        },
    )

    @field_validator("clicked_at", "created_at")
    @classmethod
    def _whole_seconds(cls, value: datetime) -> datetime:
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(microsecond=0)


class TrackResult(BaseModel):
    """Outcome of one ingestion attempt"""

    success: bool
    event_id: Optional[int] = None
    error: Optional[str] = None
    reason: Optional[str] = None  # config_missing, invalid_input, store_error, unexpected
