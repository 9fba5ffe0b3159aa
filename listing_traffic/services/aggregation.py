"""
Aggregation engine for dashboard and analytics views.

Portfolio figures come from legacy ``analytics`` rows only; the normalized
per-listing figures live in ``metric_sources``. Null counts are treated as 0.
"""

import asyncio
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from listing_traffic.models.caller import CallerIdentity
from listing_traffic.models.metrics import ListingPerformance, PortfolioSummary, TrendPoint
from listing_traffic.services import supabase_client as store
from listing_traffic.utils.logging import get_structured_logger, timed

logger = get_structured_logger(__name__)


def _n(value: Optional[int]) -> int:
    return value or 0


def summarize_portfolio(listings: Sequence[dict], analytics: Iterable[dict]) -> PortfolioSummary:
    total_views = 0
    total_clicks = 0
    for row in analytics:
        total_views += _n(row.get("views"))
        total_clicks += _n(row.get("clicks"))

    return PortfolioSummary(
        total_views=total_views,
        total_clicks=total_clicks,
        active_listings=sum(1 for listing in listings if listing.get("is_active")),
        total_listings=len(listings),
    )


def build_trend(analytics: Iterable[dict]) -> list[TrendPoint]:
    """
    Sum views and clicks per metric date, ascending.

    Dates with no rows are absent; the series is not gap-filled.
    """
    by_date: dict[str, list[int]] = defaultdict(lambda: [0, 0])
    for row in analytics:
        totals = by_date[str(row["metric_date"])]
        totals[0] += _n(row.get("views"))
        totals[1] += _n(row.get("clicks"))

    return [
        TrendPoint(date=day, views=views, clicks=clicks)
        for day, (views, clicks) in sorted(by_date.items())
    ]


def build_performance_rows(
    listings: Sequence[dict],
    analytics: Iterable[dict],
    facebook_url_counts: Optional[dict[str, int]] = None,
    facebook_post_counts: Optional[dict[str, int]] = None,
) -> list[ListingPerformance]:
    """
    One comparison row per listing, in the order given. Callers sort.

    The Facebook count is the number of simplified posts when a listing has
    any, otherwise the number of tracked Facebook URLs.
    """
    facebook_url_counts = facebook_url_counts or {}
    facebook_post_counts = facebook_post_counts or {}

    totals: dict[str, list[int]] = defaultdict(lambda: [0, 0])
    for row in analytics:
        listing_totals = totals[row["listing_id"]]
        listing_totals[0] += _n(row.get("views"))
        listing_totals[1] += _n(row.get("clicks"))

    rows = []
    for listing in listings:
        views, clicks = totals.get(listing["id"], (0, 0))
        post_count = facebook_post_counts.get(listing["id"], 0)
        rows.append(ListingPerformance(
            listing_id=listing["id"],
            listing_name=listing.get("name") or "",
            total_views=views,
            total_clicks=clicks,
            facebook_post_count=post_count or facebook_url_counts.get(listing["id"], 0),
        ))
    return rows


@timed("portfolio_summary")
async def portfolio_summary(
    caller: CallerIdentity,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> PortfolioSummary:
    listings, analytics = await asyncio.gather(
        store.list_listings(caller),
        store.list_analytics(caller, start_date=start_date, end_date=end_date),
    )
    return summarize_portfolio(listings, analytics)


@timed("analytics_trend")
async def analytics_trend(
    caller: CallerIdentity,
    listing_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> list[TrendPoint]:
    """Trend for one listing, or across all of the caller's listings."""
    analytics = await store.list_analytics(
        caller,
        listing_id=listing_id,
        start_date=start_date,
        end_date=end_date,
        ascending=True,
    )
    return build_trend(analytics)


@timed("listing_performance")
async def listing_performance(
    caller: CallerIdentity,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> list[ListingPerformance]:
    listings = await store.list_listings(caller)
    if not listings:
        return []

    ids = [listing["id"] for listing in listings]
    analytics, url_lists, post_lists = await asyncio.gather(
        store.list_analytics(caller, start_date=start_date, end_date=end_date),
        asyncio.gather(*(store.list_facebook_urls(caller, listing_id) for listing_id in ids)),
        asyncio.gather(*(store.list_facebook_posts(caller, listing_id) for listing_id in ids)),
    )

    return build_performance_rows(
        listings,
        analytics,
        facebook_url_counts={listing_id: len(urls) for listing_id, urls in zip(ids, url_lists)},
        facebook_post_counts={listing_id: len(posts) for listing_id, posts in zip(ids, post_lists)},
    )
