"""Form validation models for listing and metric entry."""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, ValidationError, field_validator

from listing_traffic.models.analytics import Platform


def _optional_http_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not (value.startswith("http://") or value.startswith("https://")):
        raise ValueError("URL must start with http:// or https://")
    return value


def _iso_date(value: str) -> str:
    try:
        parsed = date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError("Date must be in YYYY-MM-DD format")
    if parsed > date.today():
        raise ValueError("Date cannot be in the future")
    return parsed.isoformat()


def first_error_message(error: ValidationError) -> str:
    """Human-readable message for the first validation failure."""
    errors = error.errors()
    if not errors:
        return "Invalid input"
    message = errors[0].get("msg", "Invalid input")
    # pydantic prefixes messages raised from validators
    return message.removeprefix("Value error, ")


class ListingForm(BaseModel):
    """Basic listing info."""
    name: str = Field(..., min_length=1, max_length=255)
    realtor_url: Optional[str] = None
    har_url: Optional[str] = None
    zillow_url: Optional[str] = None
    is_active: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("Listing name is required")
        return value

    @field_validator("realtor_url", "har_url", "zillow_url")
    @classmethod
    def check_url(cls, value):
        return _optional_http_url(value)


class HarSnapshotForm(BaseModel):
    """Listing-level HAR snapshot overrides."""
    har_desktop_views: Optional[int] = Field(None, ge=0)
    har_mobile_views: Optional[int] = Field(None, ge=0)
    har_photo_views: Optional[int] = Field(None, ge=0)
    har_days_on_market: Optional[int] = Field(None, ge=0)
    har_status: Optional[str] = None


class FacebookUrlForm(BaseModel):
    facebook_url: str

    @field_validator("facebook_url")
    @classmethod
    def check_facebook_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Facebook URL is required")
        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError("URL must start with http:// or https://")
        if "facebook.com" not in value and "fb.com" not in value:
            raise ValueError("Must be a valid Facebook URL")
        return value


class FacebookPostForm(BaseModel):
    url: str
    views: int = Field(0, ge=0)

    @field_validator("url")
    @classmethod
    def strip_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("URL is required")
        return value


class AnalyticsEntryForm(BaseModel):
    metric_date: str
    facebook_url_id: Optional[str] = None
    views: int = Field(0, ge=0)
    clicks: int = Field(0, ge=0)

    @field_validator("metric_date")
    @classmethod
    def check_date(cls, value: str) -> str:
        return _iso_date(value)


class PlatformMetricForm(BaseModel):
    platform: Platform
    metric_date: str
    views: Optional[int] = Field(None, ge=0)
    saves: Optional[int] = Field(None, ge=0)
    shares: Optional[int] = Field(None, ge=0)
    leads: Optional[int] = Field(None, ge=0)

    @field_validator("metric_date")
    @classmethod
    def check_date(cls, value: str) -> str:
        return _iso_date(value)


class FacebookMetricForm(BaseModel):
    facebook_url_id: str = Field(..., min_length=1)
    metric_date: str
    impressions: Optional[int] = Field(None, ge=0)
    reach: Optional[int] = Field(None, ge=0)
    post_clicks: Optional[int] = Field(None, ge=0)
    reactions: Optional[int] = Field(None, ge=0)
    comments: Optional[int] = Field(None, ge=0)
    shares: Optional[int] = Field(None, ge=0)

    @field_validator("metric_date")
    @classmethod
    def check_date(cls, value: str) -> str:
        return _iso_date(value)
