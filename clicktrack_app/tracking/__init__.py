"""
Click tracking module.

Turns a redirect into an enriched, immutable ClickEvent:
- enrichment: user agent, referrer, UTM and client address parsing
- click ids: time-based numeric ids (Strategy Pattern)
- telemetry: counters for ingestion outcomes
"""

from .models import ClickEvent, RequestMetadata, ShortUrlRef, TrackResult, UserAgentInfo, UtmParams, URL_TYPES
from .enrichment import classify_user_agent, extract_referrer_domain, extract_utm
from .click_id_factory import ClickIdFactory, ClickIdStrategyType, next_id
from .telemetry import IngestTelemetry

__all__ = [
    "ClickEvent",
    "RequestMetadata",
    "ShortUrlRef",
    "TrackResult",
    "UserAgentInfo",
    "UtmParams",
    "URL_TYPES",
    "classify_user_agent",
    "extract_referrer_domain",
    "extract_utm",
    "ClickIdFactory",
    "ClickIdStrategyType",
    "next_id",
    "IngestTelemetry",
]
