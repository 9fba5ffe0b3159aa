"""HAR traffic import models."""

from typing import Optional
from pydantic import BaseModel, Field


class HarTrafficEntry(BaseModel):
    """One parsed row of a pasted HAR traffic table."""
    address: Optional[str] = None
    mls_number: str
    days_on_market: Optional[int] = None
    status: Optional[str] = None
    desktop_views: Optional[int] = None
    mobile_views: Optional[int] = None
    photo_views: Optional[int] = None


class HarParseResult(BaseModel):
    """Parser output: entries plus non-fatal warnings and fatal errors."""
    entries: list[HarTrafficEntry] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class UnmatchedEntry(BaseModel):
    """Parsed row whose MLS number matched no listing."""
    mls_number: str
    address: Optional[str] = None


class ImportHarTrafficResult(BaseModel):
    """Import summary rendered back to the operator."""
    total_rows: int = 0
    matched: int = 0
    updated: int = 0
    unmatched: list[UnmatchedEntry] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
