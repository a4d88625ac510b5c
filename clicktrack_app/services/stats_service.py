"""
Statistics Service

Builds the stats report for a short URL from the click event log.

Each metric is its own ClickHouse query. They run concurrently, and
each one is isolated: a failing query is logged and replaced with an
empty result, so one bad metric never sinks the whole report.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List

from clicktrack_app.exceptions import AnalyticsError, ConfigMissing
from clicktrack_app.storage.strategies import ClickStorageStrategy


logger = logging.getLogger(__name__)

DEFAULT_DAYS = 30
DEFAULT_RECENT_LIMIT = 100


class StatsService:
    """
    Stats aggregator over a click storage strategy.

    Report keys (fixed shape):
        total_clicks        int, all-time
        url_type_breakdown  all-time
        clicks_over_time    last `days` days, per day and url_type
        geographic_stats    all-time
        device_stats        all-time
        browser_stats       all-time
        referrer_stats      all-time
        hourly_pattern      last `days` days, per hour of day
        utm_campaign_stats  all-time, per (source, medium, campaign)
        utm_source_stats    all-time
        utm_medium_stats    all-time
    """

    def __init__(self, storage: ClickStorageStrategy):
        self.storage = storage

    def _metric_calls(self, short_url_id: int, days: int) -> Dict[str, Callable[[], Any]]:
        storage = self.storage
        return {
            "total_clicks": lambda: storage.total_clicks(short_url_id),
            "url_type_breakdown": lambda: storage.clicks_by_url_type(short_url_id),
            "clicks_over_time": lambda: storage.clicks_over_time(short_url_id, days=days),
            "geographic_stats": lambda: storage.geographic_stats(short_url_id),
            "device_stats": lambda: storage.device_stats(short_url_id),
            "browser_stats": lambda: storage.browser_stats(short_url_id),
            "referrer_stats": lambda: storage.referrer_stats(short_url_id),
            "hourly_pattern": lambda: storage.hourly_pattern(short_url_id, days=days),
            "utm_campaign_stats": lambda: storage.utm_campaign_stats(short_url_id),
            "utm_source_stats": lambda: storage.utm_source_stats(short_url_id),
            "utm_medium_stats": lambda: storage.utm_medium_stats(short_url_id),
        }

    @staticmethod
    def _isolated(name: str, call: Callable[[], Any], default: Any) -> Any:
        """Run one metric query, substituting `default` on any failure"""
        try:
            return call()
        except ConfigMissing:
            logger.debug("Skipping %s: ClickHouse config not available", name)
        except AnalyticsError as e:
            logger.error("ClickHouse %s failed: %s", name, e)
        except Exception:
            logger.exception("Unexpected error computing %s", name)
        return default

    async def _run(self, name: str, call: Callable[[], Any], default: Any) -> Any:
        return await asyncio.to_thread(self._isolated, name, call, default)

    async def comprehensive_stats(self, short_url_id: int, days: int = DEFAULT_DAYS) -> Dict[str, Any]:
        """
        Get the full stats report for a short URL.

        Args:
            short_url_id: Registry id of the short URL
            days: Window for clicks_over_time and hourly_pattern only

        Returns:
            Mapping of metric name to rows (total_clicks is an int).
            Never raises for store or parse failures.
        """
        calls = self._metric_calls(short_url_id, days)
        names = list(calls)

        results = await asyncio.gather(*(
            self._run(name, calls[name], 0 if name == "total_clicks" else [])
            for name in names
        ))

        return dict(zip(names, results))

    async def recent_clicks(self, short_url_id: int, limit: int = DEFAULT_RECENT_LIMIT) -> List[Dict]:
        """Most recent raw click events, newest first (empty on failure)"""
        return await self._run(
            "recent_clicks",
            lambda: self.storage.recent_clicks(short_url_id, limit=limit),
            []
        )
