"""Aggregated metric shapes shared by the dashboard, reports and exports."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class MetricSource(str, Enum):
    """Where a figure came from when several tables can supply it."""
    LEGACY = "legacy"
    PLATFORM_METRICS = "platform_metrics"
    SIMPLIFIED_POST = "simplified_post"


class FacebookEntry(BaseModel):
    """One Facebook post's figures, in the order posts should be rendered."""
    url: str
    views: int = 0
    clicks: int = 0
    impressions: Optional[int] = None
    reach: Optional[int] = None


class ListingMetricsSummary(BaseModel):
    """Normalized figures for a single listing; every count defaults to 0."""
    listing_id: str
    total_views: int = 0
    total_clicks: int = 0
    general_views: int = Field(0, description="Legacy analytics rows with no Facebook URL")
    general_clicks: int = 0
    har_views: int = 0
    realtor_views: int = 0
    zillow_views: int = 0
    platform_leads: int = 0
    facebook_views: int = Field(0, description="Post views or impressions, depending on source")
    facebook_clicks: int = 0
    facebook_entries: list[FacebookEntry] = Field(default_factory=list)
    har_source: Optional[MetricSource] = None
    facebook_source: Optional[MetricSource] = None
    degraded_sources: list[str] = Field(default_factory=list)


class TrendPoint(BaseModel):
    """Views and clicks summed over one metric date."""
    date: str
    views: int = 0
    clicks: int = 0


class PortfolioSummary(BaseModel):
    """Portfolio-wide totals from legacy analytics rows only."""
    total_views: int = Field(0, ge=0)
    total_clicks: int = Field(0, ge=0)
    active_listings: int = Field(0, ge=0)
    total_listings: int = Field(0, ge=0)


class ListingPerformance(BaseModel):
    """Row of the listing comparison table (unsorted; callers sort)."""
    listing_id: str
    listing_name: str
    total_views: int = 0
    total_clicks: int = 0
    facebook_post_count: int = 0


class ReportMetrics(BaseModel):
    """Figures projected into the PDF, print and dashboard report views."""
    total_views: int = 0
    total_clicks: int = 0
    har_views: int = 0
    realtor_views: int = 0
    zillow_views: int = 0
    facebook_entries: list[FacebookEntry] = Field(default_factory=list)
    report_date: str
