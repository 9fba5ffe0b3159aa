"""Tests for the metric source normalizer."""

import pytest

from listing_traffic.models.metrics import MetricSource
from listing_traffic.services.metric_sources import (
    build_listing_summary,
    facebook_entries,
    har_views,
    normalize_listing_metrics,
    resolve_source,
)
from listing_traffic.utils.errors import NotFoundError
from tests.utils.factories import (
    create_analytics_data,
    create_facebook_metric_data,
    create_facebook_post_data,
    create_facebook_url_data,
    create_listing_data,
    create_platform_metric_data,
)


@pytest.mark.unit
def test_resolve_source_precedence():
    assert resolve_source({
        MetricSource.LEGACY: [1],
        MetricSource.PLATFORM_METRICS: [1],
        MetricSource.SIMPLIFIED_POST: [1],
    }) == MetricSource.SIMPLIFIED_POST
    assert resolve_source({
        MetricSource.LEGACY: [1],
        MetricSource.PLATFORM_METRICS: [1],
        MetricSource.SIMPLIFIED_POST: [],
    }) == MetricSource.PLATFORM_METRICS
    assert resolve_source({MetricSource.LEGACY: True}) == MetricSource.LEGACY
    assert resolve_source({MetricSource.LEGACY: []}) is None


@pytest.mark.unit
def test_har_views_prefer_platform_rows_over_snapshot():
    listing = create_listing_data("u", har_desktop_views=100, har_mobile_views=50)
    rows = [
        create_platform_metric_data(listing["id"], platform="har", views=7),
        create_platform_metric_data(listing["id"], platform="har", views=None),
        create_platform_metric_data(listing["id"], platform="zillow", views=1000),
    ]

    assert har_views(listing, rows) == (7, MetricSource.PLATFORM_METRICS)
    assert har_views(listing, rows[2:]) == (150, MetricSource.LEGACY)
    assert har_views(create_listing_data("u"), []) == (0, None)


@pytest.mark.unit
def test_facebook_posts_win_over_older_models():
    url = create_facebook_url_data("l", facebook_url="https://facebook.com/old")
    posts = [
        create_facebook_post_data("l", url="https://facebook.com/new-1", views=300),
        create_facebook_post_data("l", url="https://facebook.com/new-2", views=200),
    ]
    metrics = [create_facebook_metric_data(url["id"], impressions=999, post_clicks=9)]
    analytics = [create_analytics_data("l", facebook_url_id=url["id"], views=5, clicks=1)]

    entries, source = facebook_entries(posts, [url], metrics, analytics)

    assert source == MetricSource.SIMPLIFIED_POST
    assert [(e.url, e.views, e.clicks) for e in entries] == [
        ("https://facebook.com/new-1", 300, 0),
        ("https://facebook.com/new-2", 200, 0),
    ]


@pytest.mark.unit
def test_facebook_metrics_grouped_per_url():
    url_a = create_facebook_url_data("l", facebook_url="https://facebook.com/a")
    url_b = create_facebook_url_data("l", facebook_url="https://facebook.com/b")
    metrics = [
        create_facebook_metric_data(url_a["id"], days_ago=1, impressions=100, reach=80, post_clicks=5),
        create_facebook_metric_data(url_a["id"], days_ago=2, impressions=50, reach=None, post_clicks=1),
        create_facebook_metric_data(url_b["id"], impressions=10, reach=8, post_clicks=0),
        create_facebook_metric_data("deleted-url", impressions=1000, reach=1000, post_clicks=100),
    ]

    entries, source = facebook_entries([], [url_a, url_b], metrics, [])

    assert source == MetricSource.PLATFORM_METRICS
    assert [(e.url, e.views, e.impressions, e.reach, e.clicks) for e in entries] == [
        ("https://facebook.com/a", 150, 150, 80, 6),
        ("https://facebook.com/b", 10, 10, 8, 0),
    ]


@pytest.mark.unit
def test_summary_totals_from_legacy_analytics_only():
    listing = create_listing_data("u")
    url = create_facebook_url_data(listing["id"])
    analytics = [
        create_analytics_data(listing["id"], days_ago=1, views=10, clicks=1),
        create_analytics_data(listing["id"], days_ago=2, views=20, clicks=2),
        create_analytics_data(listing["id"], days_ago=1, facebook_url_id=url["id"], views=5, clicks=3),
    ]

    summary = build_listing_summary(listing, analytics=analytics, facebook_urls=[url])

    assert summary.general_views == 30
    assert summary.general_clicks == 3
    assert summary.facebook_views == 5
    assert summary.facebook_clicks == 3
    assert summary.facebook_source == MetricSource.LEGACY
    assert summary.total_views == 35
    assert summary.total_clicks == 6
    assert summary.har_source is None


@pytest.mark.unit
def test_summary_combines_all_sources():
    listing = create_listing_data("u", har_desktop_views=999)
    url = create_facebook_url_data(listing["id"])
    summary = build_listing_summary(
        listing,
        analytics=[create_analytics_data(listing["id"], views=10, clicks=2)],
        platform_metrics=[
            create_platform_metric_data(listing["id"], platform="har", views=40, leads=None),
            create_platform_metric_data(listing["id"], platform="realtor", views=30, leads=2),
            create_platform_metric_data(listing["id"], platform="zillow", views=20, leads=1),
        ],
        facebook_urls=[url],
        facebook_metrics=[create_facebook_metric_data(url["id"], impressions=100, post_clicks=4)],
        facebook_posts=[],
    )

    assert summary.har_views == 40
    assert summary.realtor_views == 30
    assert summary.zillow_views == 20
    assert summary.platform_leads == 3
    assert summary.facebook_views == 100
    assert summary.total_views == 10 + 40 + 30 + 20 + 100
    assert summary.total_clicks == 2 + 3 + 4


@pytest.mark.unit
def test_analytics_for_deleted_facebook_url_count_as_general():
    listing = create_listing_data("u")
    analytics = [create_analytics_data(listing["id"], facebook_url_id="gone", views=12, clicks=1)]

    summary = build_listing_summary(listing, analytics=analytics, facebook_urls=[])

    assert summary.general_views == 12
    assert summary.facebook_entries == []
    assert summary.total_views == 12


@pytest.mark.unit
def test_null_counts_are_zero():
    listing = create_listing_data("u")
    summary = build_listing_summary(
        listing,
        analytics=[create_analytics_data(listing["id"], views=None, clicks=None)],
        platform_metrics=[create_platform_metric_data(listing["id"], platform="realtor", views=None)],
    )
    assert summary.total_views == 0
    assert summary.total_clicks == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_normalize_listing_metrics_reads_store(fake_supabase, caller):
    listing = fake_supabase.add("listings", create_listing_data(caller.user_id))
    fake_supabase.add("analytics", create_analytics_data(listing["id"], views=10, clicks=1))
    fake_supabase.add("platform_metrics", create_platform_metric_data(listing["id"], platform="zillow", views=5))
    fake_supabase.add("facebook_posts", create_facebook_post_data(listing["id"], views=7))

    summary = await normalize_listing_metrics(caller, listing["id"])

    assert summary.listing_id == listing["id"]
    assert summary.total_views == 22
    assert summary.degraded_sources == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_source_degrades_to_zero(fake_supabase, caller):
    listing = fake_supabase.add("listings", create_listing_data(caller.user_id))
    fake_supabase.add("analytics", create_analytics_data(listing["id"], views=10, clicks=1))
    fake_supabase.add("platform_metrics", create_platform_metric_data(listing["id"], platform="zillow", views=5))
    fake_supabase.failing_tables.add("platform_metrics")

    summary = await normalize_listing_metrics(caller, listing["id"])

    assert summary.degraded_sources == ["platform_metrics"]
    assert summary.zillow_views == 0
    assert summary.total_views == 10


@pytest.mark.unit
def test_facebook_tied_analytics_dropped_when_urls_unavailable():
    listing = create_listing_data("u")
    analytics = [
        create_analytics_data(listing["id"], views=10, clicks=1),
        create_analytics_data(listing["id"], facebook_url_id="fb-1", views=500, clicks=40),
    ]

    summary = build_listing_summary(listing, analytics=analytics, degraded_sources=["facebook_urls"])

    assert summary.general_views == 10
    assert summary.general_clicks == 1
    assert summary.facebook_entries == []
    assert summary.total_views == 10


@pytest.mark.unit
@pytest.mark.asyncio
async def test_facebook_urls_outage_does_not_inflate_totals(fake_supabase, caller):
    listing = fake_supabase.add("listings", create_listing_data(caller.user_id))
    url = fake_supabase.add("facebook_urls", create_facebook_url_data(listing["id"]))
    fake_supabase.add("analytics", create_analytics_data(listing["id"], views=10, clicks=0))
    fake_supabase.add("analytics", create_analytics_data(listing["id"], facebook_url_id=url["id"], views=500, clicks=0))
    fake_supabase.add("facebook_posts", create_facebook_post_data(listing["id"], views=100))

    healthy = await normalize_listing_metrics(caller, listing["id"])
    fake_supabase.failing_tables.add("facebook_urls")
    degraded = await normalize_listing_metrics(caller, listing["id"])

    assert healthy.total_views == 110
    assert degraded.total_views == 110
    assert degraded.general_views == 10
    assert "facebook_urls" in degraded.degraded_sources
    assert degraded.facebook_source == MetricSource.SIMPLIFIED_POST


@pytest.mark.unit
@pytest.mark.asyncio
async def test_other_users_listing_is_not_found(fake_supabase, caller, other_caller):
    listing = fake_supabase.add("listings", create_listing_data(other_caller.user_id))

    with pytest.raises(NotFoundError):
        await normalize_listing_metrics(caller, listing["id"])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_soft_deleted_listing_is_not_found(fake_supabase, caller):
    listing = fake_supabase.add("listings", create_listing_data(caller.user_id, deleted_at="2024-12-01T00:00:00+00:00"))

    with pytest.raises(NotFoundError):
        await normalize_listing_metrics(caller, listing["id"])
