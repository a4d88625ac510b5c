from pydantic import BaseModel, Field
from typing import Any, Dict, List


Rows = List[Dict[str, Any]]


class StatsReport(BaseModel):
    """
    Fixed-shape stats report for one short URL.

    total_clicks is all-time. clicks_over_time and hourly_pattern are
    bounded by the requested days window; every other breakdown is all-time.
    A metric whose query failed comes back empty.
    """
    total_clicks: int = 0
    url_type_breakdown: Rows = Field(default_factory=list)
    clicks_over_time: Rows = Field(default_factory=list)
    geographic_stats: Rows = Field(default_factory=list)
    device_stats: Rows = Field(default_factory=list)
    browser_stats: Rows = Field(default_factory=list)
    referrer_stats: Rows = Field(default_factory=list)
    hourly_pattern: Rows = Field(default_factory=list)
    utm_campaign_stats: Rows = Field(default_factory=list)
    utm_source_stats: Rows = Field(default_factory=list)
    utm_medium_stats: Rows = Field(default_factory=list)


class ShortUrlStatsResponse(BaseModel):
    short_url_id: int
    short_uri: str
    click_count: int
    days: int
    stats: StatsReport
    recent_clicks: Rows = Field(default_factory=list)
