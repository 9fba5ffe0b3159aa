"""Report generation: load a listing, compute its report figures, render."""

import asyncio
from typing import Optional

from listing_traffic.models.caller import CallerIdentity
from listing_traffic.models.listing import Listing
from listing_traffic.services import supabase_client as store
from listing_traffic.services.aggregation import analytics_trend
from listing_traffic.services.metric_sources import normalize_listing_metrics
from listing_traffic.services.report_document import ReportDocument, build_report_document, dashboard_breakdown
from listing_traffic.services.report_html import render_print_html
from listing_traffic.services.report_metrics import report_metrics_from_analytics, report_metrics_from_summary
from listing_traffic.services.report_pdf import load_logo_data_url, render_pdf, report_filename
from listing_traffic.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

# ?source= value selecting the legacy analytics-only calculation
LEGACY_SOURCE = "analytics"

LISTING_VIEW_FIELDS = {"id", "name", "har_url", "realtor_url", "zillow_url", "image_url", "is_active", "har_status"}


async def build_listing_report(
    caller: CallerIdentity,
    listing_id: str,
    source: Optional[str] = None
) -> tuple[dict, ReportDocument]:
    """
    Build the report document for a listing.

    Raises:
        NotFoundError: Listing missing, deleted or not the caller's
    """
    listing = await store.require_owned_listing(caller, listing_id)

    if source == LEGACY_SOURCE:
        analytics, facebook_urls = await asyncio.gather(
            store.list_analytics(caller, listing_id=listing_id),
            store.list_facebook_urls(caller, listing_id),
        )
        metrics = report_metrics_from_analytics(listing, analytics, facebook_urls)
    else:
        summary = await normalize_listing_metrics(caller, listing_id, listing=listing)
        metrics = report_metrics_from_summary(summary)

    document = build_report_document(listing, metrics, logo_data_url=load_logo_data_url())
    return listing, document


async def generate_pdf_report(
    caller: CallerIdentity,
    listing_id: str,
    source: Optional[str] = None
) -> tuple[str, bytes]:
    """Returns (filename, pdf_bytes)."""
    listing, document = await build_listing_report(caller, listing_id, source)
    pdf = render_pdf(document)
    logger.info("PDF report generated", listing_id=listing_id, size_bytes=len(pdf), source=source or "normalized")
    return report_filename(listing.get("name") or ""), pdf


async def generate_print_report(caller: CallerIdentity, listing_id: str, source: Optional[str] = None) -> str:
    _, document = await build_listing_report(caller, listing_id, source)
    return render_print_html(document)


async def listing_metrics_view(caller: CallerIdentity, listing_id: str) -> dict:
    """Listing metadata, normalized summary, its dashboard breakdown and the listing's daily trend."""
    listing = await store.require_owned_listing(caller, listing_id)
    summary, trend = await asyncio.gather(
        normalize_listing_metrics(caller, listing_id, listing=listing),
        analytics_trend(caller, listing_id=listing_id),
    )
    document = build_report_document(listing, report_metrics_from_summary(summary))
    return {
        "listing": Listing.model_validate(listing).model_dump(include=LISTING_VIEW_FIELDS),
        "summary": summary.model_dump(mode="json"),
        "breakdown": dashboard_breakdown(document),
        "trend": [point.model_dump() for point in trend],
    }
