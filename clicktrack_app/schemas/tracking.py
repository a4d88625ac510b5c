from pydantic import BaseModel
from typing import Optional


class TrackClickResponse(BaseModel):
    """Body returned to the click-tracking beacon"""
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
