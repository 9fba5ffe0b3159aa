"""Listing models."""

from typing import Optional
from pydantic import BaseModel, Field


class Listing(BaseModel):
    """Tracked property listing owned by a user."""
    id: str = Field(..., description="Listing ID (uuid)")
    user_id: str = Field(..., description="Owner user ID")
    name: str = Field(..., description="Display name, often embeds the MLS number")
    har_url: Optional[str] = Field(None, description="HAR.com listing URL")
    realtor_url: Optional[str] = Field(None, description="Realtor.com listing URL")
    zillow_url: Optional[str] = Field(None, description="Zillow listing URL")
    image_url: Optional[str] = Field(None, description="Public URL of the listing image")
    is_active: bool = Field(default=True, description="Active flag")
    # HAR snapshot overrides, superseded by platform_metrics rows tagged "har"
    har_desktop_views: Optional[int] = Field(None, ge=0)
    har_mobile_views: Optional[int] = Field(None, ge=0)
    har_photo_views: Optional[int] = Field(None, ge=0)
    har_days_on_market: Optional[int] = Field(None, ge=0)
    har_status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    deleted_at: Optional[str] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
