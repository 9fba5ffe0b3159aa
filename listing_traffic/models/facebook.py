"""Facebook tracking models (legacy URL + metric rows, and simplified posts)."""

from typing import Optional
from pydantic import BaseModel, Field


class FacebookUrl(BaseModel):
    """Tracked Facebook post under the legacy model."""
    id: str
    listing_id: str
    facebook_url: str
    created_at: Optional[str] = None


class FacebookPost(BaseModel):
    """Simplified Facebook post with a single absolute view count."""
    id: str
    listing_id: str
    url: str = Field(..., description="Post URL (unvalidated text)")
    views: int = Field(default=0, ge=0, description="Last known view count")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class FacebookMetric(BaseModel):
    """Per-day metrics for a legacy Facebook URL. Unique per (facebook_url_id, metric_date)."""
    id: Optional[str] = None
    facebook_url_id: str
    metric_date: str
    impressions: Optional[int] = None
    reach: Optional[int] = None
    post_clicks: Optional[int] = None
    reactions: Optional[int] = None
    comments: Optional[int] = None
    shares: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
