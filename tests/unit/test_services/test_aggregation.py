"""Tests for the aggregation engine."""

import pytest

from listing_traffic.services.aggregation import (
    analytics_trend,
    build_performance_rows,
    build_trend,
    listing_performance,
    portfolio_summary,
    summarize_portfolio,
)
from tests.utils.factories import (
    create_analytics_data,
    create_facebook_post_data,
    create_facebook_url_data,
    create_listing_data,
    create_platform_metric_data,
)


@pytest.mark.unit
def test_trend_sums_same_date_and_omits_gaps():
    rows = [
        {"listing_id": "a", "metric_date": "2024-12-03", "views": 10, "clicks": 1},
        {"listing_id": "b", "metric_date": "2024-12-03", "views": 20, "clicks": None},
        {"listing_id": "a", "metric_date": "2024-12-01", "views": 5, "clicks": 2},
    ]

    trend = build_trend(rows)

    assert [(p.date, p.views, p.clicks) for p in trend] == [
        ("2024-12-01", 5, 2),
        ("2024-12-03", 30, 1),
    ]
    assert "2024-12-02" not in [p.date for p in trend]


@pytest.mark.unit
def test_trend_empty():
    assert build_trend([]) == []


@pytest.mark.unit
def test_summarize_portfolio_counts():
    listings = [
        create_listing_data("u", is_active=True),
        create_listing_data("u", is_active=False),
        create_listing_data("u", is_active=True),
    ]
    analytics = [
        create_analytics_data(listings[0]["id"], views=10, clicks=1),
        create_analytics_data(listings[1]["id"], views=None, clicks=4),
    ]

    summary = summarize_portfolio(listings, analytics)

    assert summary.total_views == 10
    assert summary.total_clicks == 5
    assert summary.active_listings == 2
    assert summary.total_listings == 3
    assert 0 <= summary.active_listings <= summary.total_listings


@pytest.mark.unit
def test_performance_rows_keep_input_order_and_count_posts():
    first = create_listing_data("u", name="First")
    second = create_listing_data("u", name="Second")
    analytics = [
        create_analytics_data(second["id"], views=100, clicks=10),
        create_analytics_data(second["id"], views=1, clicks=1),
    ]

    rows = build_performance_rows(
        [first, second],
        analytics,
        facebook_url_counts={first["id"]: 2, second["id"]: 4},
        facebook_post_counts={second["id"]: 1},
    )

    assert [row.listing_name for row in rows] == ["First", "Second"]
    assert (rows[0].total_views, rows[0].total_clicks, rows[0].facebook_post_count) == (0, 0, 2)
    assert (rows[1].total_views, rows[1].total_clicks, rows[1].facebook_post_count) == (101, 11, 1)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_portfolio_summary_uses_legacy_analytics_only(fake_supabase, caller, other_caller):
    mine = fake_supabase.add("listings", create_listing_data(caller.user_id))
    deleted = fake_supabase.add("listings", create_listing_data(caller.user_id, deleted_at="2024-01-01T00:00:00+00:00"))
    theirs = fake_supabase.add("listings", create_listing_data(other_caller.user_id))
    fake_supabase.add("analytics", create_analytics_data(mine["id"], views=10, clicks=2))
    fake_supabase.add("analytics", create_analytics_data(deleted["id"], views=500, clicks=50))
    fake_supabase.add("analytics", create_analytics_data(theirs["id"], views=700, clicks=70))
    fake_supabase.add("platform_metrics", create_platform_metric_data(mine["id"], views=1000))

    summary = await portfolio_summary(caller)

    assert summary.total_views == 10
    assert summary.total_clicks == 2
    assert summary.total_listings == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_portfolio_summary_with_no_listings(fake_supabase, caller):
    summary = await portfolio_summary(caller)
    assert summary.model_dump() == {"total_views": 0, "total_clicks": 0, "active_listings": 0, "total_listings": 0}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_trend_date_window_is_inclusive(fake_supabase, caller):
    listing = fake_supabase.add("listings", create_listing_data(caller.user_id))
    for day, views in (("2024-11-30", 1), ("2024-12-01", 2), ("2024-12-05", 3), ("2024-12-06", 4)):
        fake_supabase.add("analytics", create_analytics_data(listing["id"], metric_date=day, views=views, clicks=0))

    trend = await analytics_trend(caller, start_date="2024-12-01", end_date="2024-12-05")

    assert [(p.date, p.views) for p in trend] == [("2024-12-01", 2), ("2024-12-05", 3)]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_trend_for_one_listing_ignores_others(fake_supabase, caller):
    first = fake_supabase.add("listings", create_listing_data(caller.user_id))
    second = fake_supabase.add("listings", create_listing_data(caller.user_id))
    fake_supabase.add("analytics", create_analytics_data(first["id"], metric_date="2024-12-01", views=5, clicks=1))
    fake_supabase.add("analytics", create_analytics_data(first["id"], metric_date="2024-12-02", views=7, clicks=0))
    fake_supabase.add("analytics", create_analytics_data(second["id"], metric_date="2024-12-01", views=100, clicks=9))

    trend = await analytics_trend(caller, listing_id=first["id"])
    everything = await analytics_trend(caller)

    assert [(p.date, p.views, p.clicks) for p in trend] == [("2024-12-01", 5, 1), ("2024-12-02", 7, 0)]
    assert [(p.date, p.views) for p in everything] == [("2024-12-01", 105), ("2024-12-02", 7)]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_listing_performance_from_store(fake_supabase, caller):
    listing = fake_supabase.add("listings", create_listing_data(caller.user_id, name="Only"))
    fake_supabase.add("analytics", create_analytics_data(listing["id"], views=3, clicks=1))
    fake_supabase.add("facebook_urls", create_facebook_url_data(listing["id"]))
    fake_supabase.add("facebook_posts", create_facebook_post_data(listing["id"]))
    fake_supabase.add("facebook_posts", create_facebook_post_data(listing["id"]))

    rows = await listing_performance(caller)

    assert len(rows) == 1
    assert rows[0].listing_name == "Only"
    assert rows[0].total_views == 3
    assert rows[0].facebook_post_count == 2
