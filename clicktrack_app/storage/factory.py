"""
Factory for creating click storage instances.
Simple, clean factory with singleton caching.
"""

import logging
from enum import Enum
from typing import Optional

from clicktrack_app.config import AnalyticsStoreConfig
from .client import ClickHouseClient
from .strategies import ClickStorageStrategy, ClickHouseClickStorage, DisabledClickStorage


logger = logging.getLogger(__name__)


class ClickStorageBackend(Enum):
    """Available click storage backends"""
    CLICKHOUSE = "clickhouse"
    DISABLED = "disabled"


class ClickStorageFactory:
    """
    Simple factory for creating click storage instances.

    Configuration is passed in explicitly; the factory never reads settings.
    """

    _instance: ClickStorageStrategy = None  # Single cached instance

    @classmethod
    def create(cls, config: Optional[AnalyticsStoreConfig]) -> ClickStorageStrategy:
        """
        Create or return cached click storage instance.

        Args:
            config: Analytics store config, or None if not configured

        Returns:
            Singleton click storage instance
        """
        # Return cached instance if exists
        if cls._instance is not None:
            return cls._instance

        backend = ClickStorageBackend.CLICKHOUSE if config else ClickStorageBackend.DISABLED

        if backend == ClickStorageBackend.CLICKHOUSE:
            cls._instance = ClickHouseClickStorage(ClickHouseClient(config))
            logger.info("✅ ClickHouse click storage initialized (%s)", config.url)

        elif backend == ClickStorageBackend.DISABLED:
            cls._instance = DisabledClickStorage()
            logger.warning("⚠️  ClickHouse config not available, click tracking and stats are disabled")

        else:
            raise ValueError(f"Unknown storage backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
