"""
Click storage module for analytics data.

This module implements the Strategy Pattern for the analytics store.
Click events live in ClickHouse, separate from the transactional
short URL registry.
"""

from .query import escape, Query, String, UInt, DateTime
from .client import ClickHouseClient, parse_json_each_row
from .strategies import ClickStorageStrategy, ClickHouseClickStorage, DisabledClickStorage
from .factory import ClickStorageFactory, ClickStorageBackend

__all__ = [
    "escape",
    "Query",
    "String",
    "UInt",
    "DateTime",
    "ClickHouseClient",
    "parse_json_each_row",
    "ClickStorageStrategy",
    "ClickHouseClickStorage",
    "DisabledClickStorage",
    "ClickStorageFactory",
    "ClickStorageBackend",
]
