"""
Query builders for the url_clicks table.

One INSERT per click event, plus the read queries behind the stats
report. Every read asks for JSONEachRow output: one JSON object per row.
"""

from clicktrack_app.tracking.models import ClickEvent
from .query import DateTime, Query, String, UInt


TABLE = "url_clicks"

# Column order of the INSERT statement
CLICK_COLUMNS = (
    "id", "short_url_id", "tracking_id", "short_uri", "redirected_to_url", "url_type",
    "user_id", "session_id",
    "user_agent", "browser", "browser_version", "device_type", "os", "os_version",
    "ip_address", "country", "city", "region",
    "referrer", "referrer_domain",
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content",
    "clicked_at", "created_at",
)

_INTEGER_COLUMNS = {"id", "short_url_id", "user_id"}
_DATETIME_COLUMNS = {"clicked_at", "created_at"}


def create_clicks_table() -> Query:
    """
    DDL for the click event table.

    - MergeTree engine, append-only
    - Partitioned by month of clicked_at
    - Ordered by (short_url_id, clicked_at, id) for per-URL range scans
    - Timestamps are DateTime('UTC'), matching the UTC literals written by
      DateTime.render, whatever the server timezone
    """
    return Query("create_clicks_table", f"""
        CREATE TABLE IF NOT EXISTS {TABLE} (
            id UInt64,
            short_url_id UInt64,
            tracking_id String,
            short_uri String,
            redirected_to_url String,
            url_type String,
            user_id Nullable(UInt64),
            session_id Nullable(String),
            user_agent Nullable(String),
            browser Nullable(String),
            browser_version Nullable(String),
            device_type Nullable(String),
            os Nullable(String),
            os_version Nullable(String),
            ip_address Nullable(String),
            country Nullable(String),
            city Nullable(String),
            region Nullable(String),
            referrer Nullable(String),
            referrer_domain Nullable(String),
            utm_source Nullable(String),
            utm_medium Nullable(String),
            utm_campaign Nullable(String),
            utm_term Nullable(String),
            utm_content Nullable(String),
            clicked_at DateTime('UTC'),
            created_at DateTime('UTC') DEFAULT now()
        )
        ENGINE = MergeTree()
        PARTITION BY toYYYYMM(clicked_at)
        ORDER BY (short_url_id, clicked_at, id)
        SETTINGS index_granularity = 8192
    """)


def insert_click(event: ClickEvent) -> Query:
    """Render one INSERT listing every column positionally"""
    params = {}
    for column in CLICK_COLUMNS:
        value = getattr(event, column)
        if column in _INTEGER_COLUMNS:
            params[column] = UInt(value)
        elif column in _DATETIME_COLUMNS:
            params[column] = DateTime(value)
        else:
            params[column] = String(value)

    columns = ", ".join(CLICK_COLUMNS)
    placeholders = ", ".join(f"{{{column}}}" for column in CLICK_COLUMNS)
    return Query(
        "insert_click",
        f"INSERT INTO {TABLE} ({columns}) VALUES ({placeholders})",
        **params
    )


def total_clicks(short_url_id: int) -> Query:
    return Query("total_clicks", f"""
        SELECT count() AS total
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id))


def clicks_by_url_type(short_url_id: int) -> Query:
    return Query("clicks_by_url_type", f"""
        SELECT
            url_type,
            count() AS count,
            uniq(ip_address) AS unique_visitors
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
        GROUP BY url_type
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id))


def clicks_over_time(short_url_id: int, days: int = 30) -> Query:
    """Daily clicks per url_type over the last `days` days"""
    return Query("clicks_over_time", f"""
        SELECT
            toDate(clicked_at) AS date,
            url_type,
            count() AS clicks,
            uniq(ip_address) AS unique_visitors
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
          AND clicked_at >= today() - {{days}}
        GROUP BY date, url_type
        ORDER BY date DESC
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id), days=UInt(days))


def geographic_stats(short_url_id: int) -> Query:
    return Query("geographic_stats", f"""
        SELECT
            country,
            city,
            count() AS clicks,
            uniq(ip_address) AS unique_visitors
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
          AND country != ''
        GROUP BY country, city
        ORDER BY clicks DESC
        LIMIT 50
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id))


def device_stats(short_url_id: int) -> Query:
    return Query("device_stats", f"""
        SELECT
            device_type,
            count() AS clicks,
            uniq(ip_address) AS unique_visitors
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
        GROUP BY device_type
        ORDER BY clicks DESC
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id))


def browser_stats(short_url_id: int) -> Query:
    return Query("browser_stats", f"""
        SELECT
            browser,
            browser_version,
            count() AS clicks
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
          AND browser != ''
        GROUP BY browser, browser_version
        ORDER BY clicks DESC
        LIMIT 20
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id))


def referrer_stats(short_url_id: int) -> Query:
    return Query("referrer_stats", f"""
        SELECT
            referrer_domain,
            count() AS clicks,
            uniq(ip_address) AS unique_visitors
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
          AND referrer_domain != ''
        GROUP BY referrer_domain
        ORDER BY clicks DESC
        LIMIT 20
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id))


def hourly_pattern(short_url_id: int, days: int = 7) -> Query:
    """Clicks per hour of day over the last `days` days"""
    return Query("hourly_pattern", f"""
        SELECT
            toHour(clicked_at) AS hour,
            count() AS clicks
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
          AND clicked_at >= today() - {{days}}
        GROUP BY hour
        ORDER BY hour
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id), days=UInt(days))


def utm_campaign_stats(short_url_id: int) -> Query:
    """Clicks per (source, medium, campaign) triple"""
    return Query("utm_campaign_stats", f"""
        SELECT
            utm_source,
            utm_medium,
            utm_campaign,
            count() AS clicks,
            uniq(ip_address) AS unique_visitors
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
          AND utm_campaign IS NOT NULL
        GROUP BY utm_source, utm_medium, utm_campaign
        ORDER BY clicks DESC
        LIMIT 50
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id))


def utm_source_stats(short_url_id: int) -> Query:
    return Query("utm_source_stats", f"""
        SELECT
            utm_source,
            count() AS clicks,
            uniq(ip_address) AS unique_visitors
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
          AND utm_source IS NOT NULL
        GROUP BY utm_source
        ORDER BY clicks DESC
        LIMIT 20
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id))


def utm_medium_stats(short_url_id: int) -> Query:
    return Query("utm_medium_stats", f"""
        SELECT
            utm_medium,
            count() AS clicks,
            uniq(ip_address) AS unique_visitors
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
          AND utm_medium IS NOT NULL
        GROUP BY utm_medium
        ORDER BY clicks DESC
        LIMIT 20
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id))


def recent_clicks(short_url_id: int, limit: int = 100) -> Query:
    """Most recent raw events, newest first"""
    return Query("recent_clicks", f"""
        SELECT *
        FROM {TABLE}
        WHERE short_url_id = {{short_url_id}}
        ORDER BY clicked_at DESC, id DESC
        LIMIT {{limit}}
        FORMAT JSONEachRow
    """, short_url_id=UInt(short_url_id), limit=UInt(limit))
