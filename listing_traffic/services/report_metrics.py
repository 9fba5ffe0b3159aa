"""
Builders for ``ReportMetrics``, the figures every report surface renders.

Two calculation paths exist: the normalized summary (all metric sources)
and the legacy analytics path, which spreads general views evenly across
whichever platform URLs the listing has configured.
"""

import math
import os
from datetime import date
from typing import Optional, Sequence

from listing_traffic.models.metrics import FacebookEntry, ListingMetricsSummary, ReportMetrics
from listing_traffic.services.metric_sources import split_analytics

PLATFORM_URL_FIELDS = ("har_url", "realtor_url", "zillow_url")

PLATFORM_CLICK_RATE = 0.15


class ReportConfig:
    """Report settings from environment variables."""

    ESTIMATE_PLATFORM_CLICKS = os.getenv("REPORT_ESTIMATE_PLATFORM_CLICKS", "true").lower() == "true"
    BRAND_NAME = os.getenv("REPORT_BRAND_NAME", "Premium Traffic Report")
    LOGO_PATH = os.getenv(
        "REPORT_LOGO_PATH",
        os.path.join(os.path.dirname(os.path.dirname(__file__)), "assets", "report_logo.png"),
    )
    TEMPLATES_DIR = os.getenv(
        "REPORT_TEMPLATES_DIR",
        os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates"),
    )
    IMAGE_FETCH_TIMEOUT_SECONDS = float(os.getenv("REPORT_IMAGE_FETCH_TIMEOUT_SECONDS", "5"))


def format_report_date(day: Optional[date] = None) -> str:
    """'Month D, YYYY', e.g. 'March 5, 2025'."""
    day = day or date.today()
    return f"{day.strftime('%B')} {day.day}, {day.year}"


def estimate_platform_clicks(views: int) -> Optional[int]:
    """
    Placeholder click figure for listing platforms: 15% of views, floored.

    Returns None when estimation is switched off, so renderers leave the
    figure out instead of showing a number nobody tracked.
    """
    if not ReportConfig.ESTIMATE_PLATFORM_CLICKS:
        return None
    return math.floor(views * PLATFORM_CLICK_RATE)


def configured_platforms(listing: dict) -> dict[str, bool]:
    """{'har': bool, 'realtor': bool, 'zillow': bool} from the listing's URLs."""
    return {field.removesuffix("_url"): bool(listing.get(field)) for field in PLATFORM_URL_FIELDS}


def split_views_across_platforms(views: int, listing: dict) -> dict[str, int]:
    """
    Distribute ``views`` equally over the configured platform URLs.

    Floor division; the remainder is dropped. Unconfigured platforms get 0.
    """
    platforms = configured_platforms(listing)
    count = sum(platforms.values())
    share = views // count if count else 0
    return {name: share if present else 0 for name, present in platforms.items()}


def report_metrics_from_summary(summary: ListingMetricsSummary, report_date: Optional[str] = None) -> ReportMetrics:
    return ReportMetrics(
        total_views=summary.total_views,
        total_clicks=summary.total_clicks,
        har_views=summary.har_views,
        realtor_views=summary.realtor_views,
        zillow_views=summary.zillow_views,
        facebook_entries=list(summary.facebook_entries),
        report_date=report_date or format_report_date(),
    )


def report_metrics_from_analytics(
    listing: dict,
    analytics: Sequence[dict],
    facebook_urls: Sequence[dict],
    report_date: Optional[str] = None
) -> ReportMetrics:
    """
    Legacy report figures from analytics rows alone.

    Totals cover every row. Rows tied to a tracked Facebook URL become one
    entry per URL; the rest are general views split across platforms.
    """
    url_by_id = {row["id"]: row["facebook_url"] for row in facebook_urls}
    general, facebook = split_analytics(analytics, url_by_id)

    grouped: dict[str, FacebookEntry] = {}
    for row in facebook:
        url = url_by_id[row["facebook_url_id"]]
        entry = grouped.setdefault(url, FacebookEntry(url=url))
        entry.views += row.get("views") or 0
        entry.clicks += row.get("clicks") or 0

    general_views = sum(row.get("views") or 0 for row in general)
    split = split_views_across_platforms(general_views, listing)

    return ReportMetrics(
        total_views=sum(row.get("views") or 0 for row in analytics),
        total_clicks=sum(row.get("clicks") or 0 for row in analytics),
        har_views=split["har"],
        realtor_views=split["realtor"],
        zillow_views=split["zillow"],
        facebook_entries=list(grouped.values()),
        report_date=report_date or format_report_date(),
    )
