"""
Metric source normalizer.

A listing's traffic can be recorded in four tables that overlap:
legacy ``analytics`` rows, ``platform_metrics``, ``facebook_metrics`` and
``facebook_posts``, plus the HAR snapshot columns on the listing itself.
This module reduces them to one ``ListingMetricsSummary``. Where two
tables can supply the same figure, ``resolve_source`` picks the winner.
"""

import asyncio
from typing import Any, Optional, Sequence

from listing_traffic.models.caller import CallerIdentity
from listing_traffic.models.metrics import FacebookEntry, ListingMetricsSummary, MetricSource
from listing_traffic.services import supabase_client as store
from listing_traffic.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

# Highest precedence first
SOURCE_PRECEDENCE = (
    MetricSource.SIMPLIFIED_POST,
    MetricSource.PLATFORM_METRICS,
    MetricSource.LEGACY,
)


def resolve_source(candidates: dict[MetricSource, Any]) -> Optional[MetricSource]:
    """Return the highest-precedence source whose candidate data is non-empty."""
    for source in SOURCE_PRECEDENCE:
        if candidates.get(source):
            return source
    return None


def _n(value: Optional[int]) -> int:
    return value or 0


def _platform_rows(platform_metrics: Sequence[dict], platform: str) -> list[dict]:
    return [row for row in platform_metrics if row.get("platform") == platform]


def har_views(listing: dict, platform_metrics: Sequence[dict]) -> tuple[int, Optional[MetricSource]]:
    """HAR views from platform_metrics rows tagged har, else the listing snapshot."""
    har_rows = _platform_rows(platform_metrics, "har")
    has_snapshot = listing.get("har_desktop_views") is not None or listing.get("har_mobile_views") is not None

    source = resolve_source({
        MetricSource.PLATFORM_METRICS: har_rows,
        MetricSource.LEGACY: has_snapshot,
    })
    if source == MetricSource.PLATFORM_METRICS:
        return sum(_n(row.get("views")) for row in har_rows), source
    if source == MetricSource.LEGACY:
        return _n(listing.get("har_desktop_views")) + _n(listing.get("har_mobile_views")), source
    return 0, None


def _entries_from_posts(posts: Sequence[dict]) -> list[FacebookEntry]:
    return [FacebookEntry(url=post["url"], views=_n(post.get("views"))) for post in posts]


def _entries_from_facebook_metrics(url_by_id: dict[str, str], facebook_metrics: Sequence[dict]) -> list[FacebookEntry]:
    grouped: dict[str, dict[str, int]] = {}
    for row in facebook_metrics:
        url = url_by_id.get(row.get("facebook_url_id"))
        if not url:
            continue
        totals = grouped.setdefault(url, {"impressions": 0, "reach": 0, "clicks": 0})
        totals["impressions"] += _n(row.get("impressions"))
        totals["reach"] += _n(row.get("reach"))
        totals["clicks"] += _n(row.get("post_clicks"))

    return [
        FacebookEntry(
            url=url,
            views=totals["impressions"],
            clicks=totals["clicks"],
            impressions=totals["impressions"],
            reach=totals["reach"],
        )
        for url, totals in grouped.items()
    ]


def _entries_from_analytics(url_by_id: dict[str, str], facebook_analytics: Sequence[dict]) -> list[FacebookEntry]:
    grouped: dict[str, dict[str, int]] = {}
    for row in facebook_analytics:
        url = url_by_id[row["facebook_url_id"]]
        totals = grouped.setdefault(url, {"views": 0, "clicks": 0})
        totals["views"] += _n(row.get("views"))
        totals["clicks"] += _n(row.get("clicks"))
    return [FacebookEntry(url=url, **totals) for url, totals in grouped.items()]


def split_analytics(analytics: Sequence[dict], url_by_id: dict[str, str]) -> tuple[list[dict], list[dict]]:
    """
    Split legacy analytics into (general, facebook) rows.

    Rows whose Facebook URL has been deleted count as general.
    """
    general, facebook = [], []
    for row in analytics:
        if row.get("facebook_url_id") in url_by_id:
            facebook.append(row)
        else:
            general.append(row)
    return general, facebook


def facebook_entries(
    facebook_posts: Sequence[dict],
    facebook_urls: Sequence[dict],
    facebook_metrics: Sequence[dict],
    facebook_analytics: Sequence[dict],
) -> tuple[list[FacebookEntry], Optional[MetricSource]]:
    """Facebook entries from the winning source; the others are ignored entirely."""
    url_by_id = {row["id"]: row["facebook_url"] for row in facebook_urls}
    metric_entries = _entries_from_facebook_metrics(url_by_id, facebook_metrics)

    source = resolve_source({
        MetricSource.SIMPLIFIED_POST: facebook_posts,
        MetricSource.PLATFORM_METRICS: metric_entries,
        MetricSource.LEGACY: facebook_analytics,
    })
    if source == MetricSource.SIMPLIFIED_POST:
        return _entries_from_posts(facebook_posts), source
    if source == MetricSource.PLATFORM_METRICS:
        return metric_entries, source
    if source == MetricSource.LEGACY:
        return _entries_from_analytics(url_by_id, facebook_analytics), source
    return [], None


def build_listing_summary(
    listing: dict,
    analytics: Sequence[dict] = (),
    platform_metrics: Sequence[dict] = (),
    facebook_urls: Sequence[dict] = (),
    facebook_metrics: Sequence[dict] = (),
    facebook_posts: Sequence[dict] = (),
    degraded_sources: Sequence[str] = (),
) -> ListingMetricsSummary:
    """Reduce raw rows for one listing into a summary. Pure; no I/O."""
    url_by_id = {row["id"]: row["facebook_url"] for row in facebook_urls}
    if "facebook_urls" in degraded_sources:
        # Without the URL list, Facebook-tied rows can't be told from orphans; drop them
        analytics = [row for row in analytics if row.get("facebook_url_id") is None]
    general_rows, facebook_rows = split_analytics(analytics, url_by_id)

    general_views = sum(_n(row.get("views")) for row in general_rows)
    general_clicks = sum(_n(row.get("clicks")) for row in general_rows)

    har, har_source = har_views(listing, platform_metrics)
    realtor = sum(_n(row.get("views")) for row in _platform_rows(platform_metrics, "realtor"))
    zillow = sum(_n(row.get("views")) for row in _platform_rows(platform_metrics, "zillow"))
    leads = sum(_n(row.get("leads")) for row in platform_metrics)

    entries, facebook_source = facebook_entries(facebook_posts, facebook_urls, facebook_metrics, facebook_rows)
    facebook_views = sum(entry.views for entry in entries)
    facebook_clicks = sum(entry.clicks for entry in entries)

    return ListingMetricsSummary(
        listing_id=listing["id"],
        total_views=general_views + har + realtor + zillow + facebook_views,
        total_clicks=general_clicks + leads + facebook_clicks,
        general_views=general_views,
        general_clicks=general_clicks,
        har_views=har,
        realtor_views=realtor,
        zillow_views=zillow,
        platform_leads=leads,
        facebook_views=facebook_views,
        facebook_clicks=facebook_clicks,
        facebook_entries=entries,
        har_source=har_source,
        facebook_source=facebook_source,
        degraded_sources=list(degraded_sources),
    )


# Source name -> store function, resolved at call time
SOURCE_FETCHERS = {
    "analytics": "list_analytics",
    "platform_metrics": "list_platform_metrics",
    "facebook_urls": "list_facebook_urls",
    "facebook_metrics": "list_facebook_metrics",
    "facebook_posts": "list_facebook_posts",
}


async def fetch_metric_sources(caller: CallerIdentity, listing_id: str) -> tuple[dict[str, list[dict]], list[str]]:
    """
    Fetch every metric source for a listing concurrently.

    A source whose fetch fails contributes an empty list and is reported in
    the second return value; it never aborts the others.
    """
    results = await asyncio.gather(
        *(getattr(store, fetcher)(caller, listing_id) for fetcher in SOURCE_FETCHERS.values()),
        return_exceptions=True,
    )

    sources: dict[str, list[dict]] = {}
    degraded: list[str] = []
    for name, result in zip(SOURCE_FETCHERS, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning(
                "Metric source unavailable, continuing without it",
                listing_id=listing_id,
                source=name,
                error=str(result),
            )
            sources[name] = []
            degraded.append(name)
        else:
            sources[name] = result
    return sources, degraded


async def normalize_listing_metrics(
    caller: CallerIdentity,
    listing_id: str,
    listing: Optional[dict] = None
) -> ListingMetricsSummary:
    """
    Build the normalized summary for one listing.

    Raises NotFoundError if the listing is missing, soft-deleted or not the
    caller's. Individual source failures degrade to zero.
    """
    if listing is None:
        listing = await store.require_owned_listing(caller, listing_id)

    with log_timing("normalize_listing_metrics", logger=logger, listing_id=listing_id):
        sources, degraded = await fetch_metric_sources(caller, listing_id)
        summary = build_listing_summary(listing, degraded_sources=degraded, **sources)

    logger.info(
        "Listing metrics normalized",
        listing_id=listing_id,
        total_views=summary.total_views,
        total_clicks=summary.total_clicks,
        har_source=summary.har_source.value if summary.har_source else None,
        facebook_source=summary.facebook_source.value if summary.facebook_source else None,
        degraded_sources=degraded,
    )
    return summary
