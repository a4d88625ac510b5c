from pydantic import BaseModel, HttpUrl, Field, computed_field, ConfigDict
from typing import List, Optional
from datetime import datetime
from clicktrack_app.config import settings


class ShortUrlCreate(BaseModel):
    url1: HttpUrl = Field(..., description="Primary destination URL")
    url2: Optional[HttpUrl] = Field(None, description="Optional second destination URL")
    short_uri: Optional[str] = Field(
        None,
        max_length=64,
        description="Custom short code (letters, numbers, hyphens, underscores). Generated if omitted."
    )
    user_id: Optional[int] = Field(None, ge=0)


class ShortUrlResponse(BaseModel):
    """Response schema that automatically serializes the SQLAlchemy ShortUrl model"""
    id: int
    short_uri: str
    url1: str
    url2: Optional[str] = None
    tracking_id: str
    click_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def short_url(self) -> str:
        """Computed field - automatically generated from short_uri"""
        return f"{settings.base_url}/{self.short_uri}"

    model_config = ConfigDict(from_attributes=True)


class ShortUrlCreated(ShortUrlResponse):
    warnings: List[str] = Field(default_factory=list)


class AvailabilityRequest(BaseModel):
    short_uri: str = ""


class AvailabilityResponse(BaseModel):
    available: bool
    message: str
