"""CSV export of a listing's legacy analytics rows."""

import csv
import io
from datetime import date
from typing import Optional, Sequence

from listing_traffic.models.caller import CallerIdentity
from listing_traffic.services import supabase_client as store
from listing_traffic.utils.errors import ExportError
from listing_traffic.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

CSV_HEADERS = ["Date", "Views", "Clicks", "Facebook URL"]


def format_generated_date(day: date) -> str:
    """'M/D/YYYY', no zero padding."""
    return f"{day.month}/{day.day}/{day.year}"


def export_filename(listing_id: str, day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"listing-{listing_id}-analytics-{day.isoformat()}.csv"


def export_analytics_csv(
    listing_name: str,
    analytics: Sequence[dict],
    facebook_urls: Sequence[dict] = (),
    generated: Optional[date] = None
) -> str:
    """
    Build the CSV text: a two-line banner, a blank line, the column header,
    then one row per analytics entry in the order given.

    Rows without a tracked Facebook URL are labelled 'General'.

    Raises:
        ExportError: ``analytics`` is empty
    """
    if not analytics:
        raise ExportError("No analytics data to export")

    url_by_id = {row["id"]: row["facebook_url"] for row in facebook_urls}

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow([f"Listing Analytics: {listing_name}"])
    writer.writerow([f"Generated: {format_generated_date(generated or date.today())}"])
    writer.writerow([])
    writer.writerow(CSV_HEADERS)
    for row in analytics:
        writer.writerow([
            row.get("metric_date"),
            row.get("views") or 0,
            row.get("clicks") or 0,
            url_by_id.get(row.get("facebook_url_id")) or "General",
        ])
    return output.getvalue()


async def export_listing_analytics(caller: CallerIdentity, listing_id: str) -> tuple[str, str]:
    """Fetch and export a listing's analytics. Returns (filename, csv_text)."""
    listing = await store.require_owned_listing(caller, listing_id)
    analytics = await store.list_analytics(caller, listing_id=listing_id)
    facebook_urls = await store.list_facebook_urls(caller, listing_id)

    content = export_analytics_csv(listing.get("name") or "", analytics, facebook_urls)
    logger.info("Analytics exported", listing_id=listing_id, rows=len(analytics))
    return export_filename(listing_id), content
