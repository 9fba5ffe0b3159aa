"""Tests for the dashboard and listing metrics endpoints."""

import json
import pytest

from api.analytics.dashboard import handler as dashboard_handler
from api.listings.metrics import handler as metrics_handler
from tests.utils.assertions import assert_json_error
from tests.utils.factories import create_analytics_data, create_listing_data, create_platform_metric_data
from tests.utils.helpers import auth_headers, call_handler


@pytest.mark.unit
def test_dashboard(signed_in, fake_supabase, caller):
    quiet = fake_supabase.add("listings", create_listing_data(caller.user_id, name="Quiet"))
    busy = fake_supabase.add("listings", create_listing_data(caller.user_id, name="Busy", is_active=False))
    fake_supabase.add("analytics", create_analytics_data(quiet["id"], metric_date="2024-12-01", views=1, clicks=0))
    fake_supabase.add("analytics", create_analytics_data(busy["id"], metric_date="2024-12-01", views=50, clicks=5))
    fake_supabase.add("analytics", create_analytics_data(busy["id"], metric_date="2024-12-02", views=10, clicks=1))

    status, _, body = call_handler(dashboard_handler, "GET", "/api/analytics/dashboard", auth_headers())

    payload = json.loads(body)
    assert status == 200
    assert payload["summary"] == {"total_views": 61, "total_clicks": 6, "active_listings": 1, "total_listings": 2}
    assert payload["trend"] == [
        {"date": "2024-12-01", "views": 51, "clicks": 5},
        {"date": "2024-12-02", "views": 10, "clicks": 1},
    ]
    assert [row["listing_name"] for row in payload["listings"]] == ["Busy", "Quiet"]


@pytest.mark.unit
def test_dashboard_date_window(signed_in, fake_supabase, caller):
    listing = fake_supabase.add("listings", create_listing_data(caller.user_id))
    fake_supabase.add("analytics", create_analytics_data(listing["id"], metric_date="2024-11-01", views=5, clicks=0))
    fake_supabase.add("analytics", create_analytics_data(listing["id"], metric_date="2024-12-01", views=7, clicks=0))

    status, _, body = call_handler(
        dashboard_handler, "GET", "/api/analytics/dashboard?start_date=2024-12-01&end_date=2024-12-31", auth_headers()
    )

    assert status == 200
    assert json.loads(body)["summary"]["total_views"] == 7


@pytest.mark.unit
def test_dashboard_bad_date_is_400(signed_in, fake_supabase):
    status, headers, body = call_handler(
        dashboard_handler, "GET", "/api/analytics/dashboard?start_date=12/01/2024", auth_headers()
    )

    assert assert_json_error(status, headers, body, 400) == {"error": "start_date must be in YYYY-MM-DD format"}


@pytest.mark.unit
def test_listing_metrics(signed_in, fake_supabase, caller):
    listing = fake_supabase.add("listings", create_listing_data(caller.user_id, realtor_url="https://realtor.com/1"))
    fake_supabase.add("analytics", create_analytics_data(listing["id"], metric_date="2024-12-03", views=10, clicks=2))
    other = fake_supabase.add("listings", create_listing_data(caller.user_id))
    fake_supabase.add("analytics", create_analytics_data(other["id"], metric_date="2024-12-03", views=99, clicks=9))
    fake_supabase.add("platform_metrics", create_platform_metric_data(listing["id"], platform="realtor", views=30, leads=1))

    status, _, body = call_handler(metrics_handler, "GET", f"/api/listings/metrics?listing_id={listing['id']}", auth_headers())

    payload = json.loads(body)
    assert status == 200
    assert payload["listing"]["realtor_url"] == "https://realtor.com/1"
    assert "user_id" not in payload["listing"]
    assert payload["summary"]["total_views"] == 40
    assert payload["summary"]["total_clicks"] == 3
    assert payload["breakdown"]["summary"] == {"Total Views": 40, "Total Clicks": 3}
    assert [card["key"] for card in payload["breakdown"]["platforms"]] == ["realtor"]
    assert payload["trend"] == [{"date": "2024-12-03", "views": 10, "clicks": 2}]


@pytest.mark.unit
def test_listing_metrics_missing_listing(signed_in, fake_supabase):
    status, headers, body = call_handler(metrics_handler, "GET", "/api/listings/does-not-exist/metrics", auth_headers())

    assert assert_json_error(status, headers, body, 404) == {"error": "Listing not found"}
