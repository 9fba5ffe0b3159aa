"""Legacy analytics and platform metric models."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class Platform(str, Enum):
    """Listing platforms tracked in platform_metrics."""
    REALTOR = "realtor"
    ZILLOW = "zillow"
    HAR = "har"


class Analytics(BaseModel):
    """Legacy per-day analytics row. Unique per (listing_id, facebook_url_id, metric_date)."""
    id: Optional[str] = None
    listing_id: str
    facebook_url_id: Optional[str] = Field(None, description="Null for general listing-level rows")
    metric_date: str
    views: int = 0
    clicks: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PlatformMetric(BaseModel):
    """Per-day platform metrics. Unique per (listing_id, platform, metric_date)."""
    id: Optional[str] = None
    listing_id: str
    platform: Platform
    metric_date: str
    views: Optional[int] = None
    saves: Optional[int] = None
    shares: Optional[int] = None
    leads: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
