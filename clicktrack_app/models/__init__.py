"""
Database models for the short URL registry.

Note: Click events are stored in ClickHouse, not in SQLAlchemy models.
This separates transactional data from analytical data.
"""

from .short_url import ShortUrl

__all__ = ["ShortUrl"]
