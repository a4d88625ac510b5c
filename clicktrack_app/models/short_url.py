from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from clicktrack_app.database.connection import Base


class ShortUrl(Base):
    """
    Short URL model for transactional data.

    One slug maps to one or two destinations (url1, url2). Click events
    reference a short URL by id and tracking_id; they are stored in
    ClickHouse, not here.

    click_count is a side counter bumped on every redirect. It is only
    eventually consistent with the click event log.
    """
    __tablename__ = "short_urls"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, nullable=True, index=True)
    url1 = Column(Text, nullable=False)
    url2 = Column(Text, nullable=True)
    short_uri = Column(String, unique=True, nullable=False, index=True)
    # 32 hex chars, generated once at creation and never changed
    tracking_id = Column(String(32), unique=True, nullable=False, index=True)
    click_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def destination(self, url_type: str) -> str:
        """Resolve url1/url2 to a destination, falling back to url1"""
        if url_type == "url2" and self.url2:
            return self.url2
        return self.url1
