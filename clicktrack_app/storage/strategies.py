"""
Click storage strategies using Strategy Pattern.

Separates the analytics store from the services that write and read it:
- ClickHouseClickStorage: production store over the HTTP interface
- DisabledClickStorage: stands in when the store is not configured
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List

from clicktrack_app.exceptions import ConfigMissing
from clicktrack_app.tracking.models import ClickEvent
from . import queries
from .client import ClickHouseClient


logger = logging.getLogger(__name__)


class ClickStorageStrategy(ABC):
    """
    Abstract base class for click storage strategies.

    Writes are one event at a time. Every read method answers one stats
    metric and raises on failure (StoreError, ParseError, ConfigMissing);
    isolating failures is the stats service's job, not the storage's.

    Pattern: Strategy Pattern
    """

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the storage can accept writes and queries"""
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Whether the store answers right now (never raises)"""
        pass

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create the click table if it doesn't exist"""
        pass

    @abstractmethod
    def store_click(self, event: ClickEvent) -> None:
        """
        Append a single click event.

        Raises:
            StoreError: If the store rejects the insert
        """
        pass

    @abstractmethod
    def total_clicks(self, short_url_id: int) -> int:
        """All-time click count for a short URL"""
        pass

    @abstractmethod
    def clicks_by_url_type(self, short_url_id: int) -> List[Dict]:
        pass

    @abstractmethod
    def clicks_over_time(self, short_url_id: int, days: int = 30) -> List[Dict]:
        pass

    @abstractmethod
    def geographic_stats(self, short_url_id: int) -> List[Dict]:
        pass

    @abstractmethod
    def device_stats(self, short_url_id: int) -> List[Dict]:
        pass

    @abstractmethod
    def browser_stats(self, short_url_id: int) -> List[Dict]:
        pass

    @abstractmethod
    def referrer_stats(self, short_url_id: int) -> List[Dict]:
        pass

    @abstractmethod
    def hourly_pattern(self, short_url_id: int, days: int = 7) -> List[Dict]:
        pass

    @abstractmethod
    def utm_campaign_stats(self, short_url_id: int) -> List[Dict]:
        pass

    @abstractmethod
    def utm_source_stats(self, short_url_id: int) -> List[Dict]:
        pass

    @abstractmethod
    def utm_medium_stats(self, short_url_id: int) -> List[Dict]:
        pass

    @abstractmethod
    def recent_clicks(self, short_url_id: int, limit: int = 100) -> List[Dict]:
        """Most recent raw events, newest first"""
        pass


class ClickHouseClickStorage(ClickStorageStrategy):
    """
    ClickHouse implementation of click storage.

    The url_clicks table is a MergeTree partitioned by month and ordered
    by (short_url_id, clicked_at, id), so every per-URL query here is a
    range scan. Concurrent inserts and reads are handled by ClickHouse;
    nothing is locked on this side.
    """

    def __init__(self, client: ClickHouseClient):
        """
        Initialize ClickHouse click storage.

        Args:
            client: Configured ClickHouse HTTP client
        """
        self.client = client

    @property
    def is_configured(self) -> bool:
        return True

    def ping(self) -> bool:
        return self.client.ping()

    def ensure_schema(self) -> None:
        self.client.execute(queries.create_clicks_table())
        logger.info("✅ ClickHouse url_clicks table ready")

    def store_click(self, event: ClickEvent) -> None:
        self.client.execute(queries.insert_click(event))

    def total_clicks(self, short_url_id: int) -> int:
        rows = self.client.select(queries.total_clicks(short_url_id))
        if not rows:
            return 0
        # UInt64 may arrive quoted depending on server settings
        return int(rows[0].get("total", 0))

    def clicks_by_url_type(self, short_url_id: int) -> List[Dict]:
        return self.client.select(queries.clicks_by_url_type(short_url_id))

    def clicks_over_time(self, short_url_id: int, days: int = 30) -> List[Dict]:
        return self.client.select(queries.clicks_over_time(short_url_id, days))

    def geographic_stats(self, short_url_id: int) -> List[Dict]:
        return self.client.select(queries.geographic_stats(short_url_id))

    def device_stats(self, short_url_id: int) -> List[Dict]:
        return self.client.select(queries.device_stats(short_url_id))

    def browser_stats(self, short_url_id: int) -> List[Dict]:
        return self.client.select(queries.browser_stats(short_url_id))

    def referrer_stats(self, short_url_id: int) -> List[Dict]:
        return self.client.select(queries.referrer_stats(short_url_id))

    def hourly_pattern(self, short_url_id: int, days: int = 7) -> List[Dict]:
        return self.client.select(queries.hourly_pattern(short_url_id, days))

    def utm_campaign_stats(self, short_url_id: int) -> List[Dict]:
        return self.client.select(queries.utm_campaign_stats(short_url_id))

    def utm_source_stats(self, short_url_id: int) -> List[Dict]:
        return self.client.select(queries.utm_source_stats(short_url_id))

    def utm_medium_stats(self, short_url_id: int) -> List[Dict]:
        return self.client.select(queries.utm_medium_stats(short_url_id))

    def recent_clicks(self, short_url_id: int, limit: int = 100) -> List[Dict]:
        return self.client.select(queries.recent_clicks(short_url_id, limit))


class DisabledClickStorage(ClickStorageStrategy):
    """
    Placeholder used when no analytics store is configured.

    Every operation except ping raises ConfigMissing, which the services
    turn into a failed track result or an empty metric.
    """

    @property
    def is_configured(self) -> bool:
        return False

    def ping(self) -> bool:
        return False

    def _missing(self, *args, **kwargs):
        raise ConfigMissing()

    ensure_schema = _missing
    store_click = _missing
    total_clicks = _missing
    clicks_by_url_type = _missing
    clicks_over_time = _missing
    geographic_stats = _missing
    device_stats = _missing
    browser_stats = _missing
    referrer_stats = _missing
    hourly_pattern = _missing
    utm_campaign_stats = _missing
    utm_source_stats = _missing
    utm_medium_stats = _missing
    recent_clicks = _missing
