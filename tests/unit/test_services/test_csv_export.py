"""Tests for analytics CSV export."""

import pytest
from datetime import date
from freezegun import freeze_time

from listing_traffic.services.csv_export import export_analytics_csv, export_filename, export_listing_analytics
from listing_traffic.utils.errors import ExportError, NotFoundError
from tests.utils.factories import create_analytics_data, create_facebook_url_data, create_listing_data


@pytest.mark.unit
def test_export_layout():
    url = create_facebook_url_data("l", facebook_url="https://facebook.com/p/1")
    rows = [
        {"metric_date": "2024-12-02", "views": 10, "clicks": 1, "facebook_url_id": None},
        {"metric_date": "2024-12-01", "views": None, "clicks": 3, "facebook_url_id": url["id"]},
    ]

    content = export_analytics_csv("12 Oak St", rows, [url], generated=date(2024, 12, 9))

    assert content.split("\n") == [
        "Listing Analytics: 12 Oak St",
        "Generated: 12/9/2024",
        "",
        "Date,Views,Clicks,Facebook URL",
        "2024-12-02,10,1,General",
        "2024-12-01,0,3,https://facebook.com/p/1",
        "",
    ]


@pytest.mark.unit
def test_export_with_no_rows_raises():
    with pytest.raises(ExportError, match="No analytics data to export"):
        export_analytics_csv("12 Oak St", [])


@pytest.mark.unit
@freeze_time("2024-12-09")
def test_export_filename():
    assert export_filename("abc") == "listing-abc-analytics-2024-12-09.csv"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_export_listing_analytics(fake_supabase, caller):
    listing = fake_supabase.add("listings", create_listing_data(caller.user_id, name="Export Me"))
    fake_supabase.add("analytics", create_analytics_data(listing["id"], views=4, clicks=2))

    filename, content = await export_listing_analytics(caller, listing["id"])

    assert filename.startswith(f"listing-{listing['id']}-analytics-")
    assert content.startswith("Listing Analytics: Export Me\n")
    assert content.rstrip().endswith(",4,2,General")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_export_foreign_listing_not_found(fake_supabase, caller, other_caller):
    listing = fake_supabase.add("listings", create_listing_data(other_caller.user_id))
    fake_supabase.add("analytics", create_analytics_data(listing["id"]))

    with pytest.raises(NotFoundError):
        await export_listing_analytics(caller, listing["id"])
