"""
Declarative description of a listing traffic report.

Built once from ``ReportMetrics`` and listing metadata, then rendered by the
PDF, print HTML and dashboard surfaces so all three show the same numbers.
"""

from typing import Optional

from pydantic import BaseModel, Field

from listing_traffic.models.metrics import ReportMetrics
from listing_traffic.services.report_metrics import ReportConfig, configured_platforms, estimate_platform_clicks

REPORT_TITLE = "Property Traffic Report"
REPORT_SUBTITLE = "Performance Analysis"
ADDRESS_LABEL = "Property Address"
SOCIAL_TITLE = "Social Media Performance"
NO_PLATFORMS_NOTICE = "No listing platform URLs configured"
DISCLAIMER = (
    "This report contains proprietary traffic analytics data. All metrics are aggregated "
    "from verified listing platforms and social media channels. Data accuracy is subject "
    "to third-party reporting systems."
)

PLATFORM_LABELS = {
    "har": "HAR.com",
    "realtor": "Realtor.com",
    "zillow": "Zillow.com",
}


class ReportHeader(BaseModel):
    title: str = REPORT_TITLE
    subtitle: str = REPORT_SUBTITLE
    address_label: str = ADDRESS_LABEL
    listing_name: str
    report_date: str
    logo_data_url: str = ""
    image_url: Optional[str] = None


class StatCard(BaseModel):
    label: str
    value: int


class PlatformCard(BaseModel):
    key: str
    name: str
    views: int
    clicks: Optional[int] = Field(None, description="Estimated; None when estimation is off")
    clicks_label: str = "Est. Clicks"


class PostCard(BaseModel):
    label: str
    url: str
    views: int
    clicks: int
    impressions: Optional[int] = None
    reach: Optional[int] = None


class SocialSection(BaseModel):
    title: str = SOCIAL_TITLE
    posts: list[PostCard]


class ReportFooter(BaseModel):
    generated_label: str = "Report Generated"
    report_date: str
    brand: str
    page_label: str = "Page 1 of 1"


class ReportDocument(BaseModel):
    """Sections in render order; ``social`` is None when there are no Facebook entries."""
    header: ReportHeader
    summary: list[StatCard]
    platforms: list[PlatformCard]
    platform_notice: Optional[str] = None
    social: Optional[SocialSection] = None
    footer: ReportFooter
    disclaimer: str = DISCLAIMER


def build_report_document(listing: dict, metrics: ReportMetrics, logo_data_url: str = "") -> ReportDocument:
    views_by_platform = {
        "har": metrics.har_views,
        "realtor": metrics.realtor_views,
        "zillow": metrics.zillow_views,
    }
    present = configured_platforms(listing)

    platforms = [
        PlatformCard(
            key=key,
            name=PLATFORM_LABELS[key],
            views=views_by_platform[key],
            clicks=estimate_platform_clicks(views_by_platform[key]),
        )
        for key in PLATFORM_LABELS
        if present[key]
    ]

    social = None
    if metrics.facebook_entries:
        social = SocialSection(posts=[
            PostCard(
                label=f"Post {index}",
                url=entry.url,
                views=entry.views,
                clicks=entry.clicks,
                impressions=entry.impressions,
                reach=entry.reach,
            )
            for index, entry in enumerate(metrics.facebook_entries, start=1)
        ])

    return ReportDocument(
        header=ReportHeader(
            listing_name=listing.get("name") or "",
            report_date=metrics.report_date,
            logo_data_url=logo_data_url,
            image_url=listing.get("image_url"),
        ),
        summary=[
            StatCard(label="Total Views", value=metrics.total_views),
            StatCard(label="Total Clicks", value=metrics.total_clicks),
        ],
        platforms=platforms,
        platform_notice=None if platforms else NO_PLATFORMS_NOTICE,
        social=social,
        footer=ReportFooter(report_date=metrics.report_date, brand=ReportConfig.BRAND_NAME),
    )


def dashboard_breakdown(document: ReportDocument) -> dict:
    """JSON-ready breakdown for the interactive dashboard view."""
    return {
        "report_date": document.header.report_date,
        "summary": {card.label: card.value for card in document.summary},
        "platforms": [card.model_dump() for card in document.platforms],
        "platform_notice": document.platform_notice,
        "facebook_posts": [post.model_dump() for post in document.social.posts] if document.social else [],
    }
