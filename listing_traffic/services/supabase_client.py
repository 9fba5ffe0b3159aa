"""Supabase client wrapper and ownership-scoped table helpers."""

import os
from datetime import datetime, timezone
from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from listing_traffic.models.caller import CallerIdentity
from listing_traffic.utils.errors import SupabaseError, NotFoundError
import logging

logger = logging.getLogger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Client] = None

ANALYTICS_CONFLICT_TARGET = "listing_id,facebook_url_id,metric_date"
PLATFORM_METRICS_CONFLICT_TARGET = "listing_id,platform,metric_date"
FACEBOOK_METRICS_CONFLICT_TARGET = "facebook_url_id,metric_date"


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


async def close_supabase_client() -> None:
    """Drop the cached Supabase client."""
    global _client
    if _client:
        _client = None
        logger.info("Supabase client closed")


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


def _rows(result) -> list[dict]:
    return result.data if result.data else []


def _first(result) -> Optional[dict]:
    rows = _rows(result)
    return rows[0] if rows else None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# Listings table operations
async def list_listings(caller: CallerIdentity) -> list[dict]:
    """Get all non-deleted listings owned by the caller, newest first."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("listings")
                .select("*")
                .eq("user_id", caller.user_id)
                .is_("deleted_at", "null")
                .order("created_at", desc=True)
                .execute()
            )
            return _rows(result)
        except Exception as e:
            raise SupabaseError(f"Failed to list listings: {e}")


async def get_listing(caller: CallerIdentity, listing_id: str) -> Optional[dict]:
    """Get a listing by ID if the caller owns it and it is not soft-deleted."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("listings")
                .select("*")
                .eq("id", listing_id)
                .eq("user_id", caller.user_id)
                .is_("deleted_at", "null")
                .execute()
            )
            return _first(result)
        except Exception as e:
            raise SupabaseError(f"Failed to get listing: {e}")


async def require_owned_listing(caller: CallerIdentity, listing_id: str) -> dict:
    """Like get_listing, but a missing listing raises NotFoundError."""
    listing = await get_listing(caller, listing_id)
    if listing is None:
        raise NotFoundError(f"Listing not found: {listing_id}")
    return listing


async def create_listing(caller: CallerIdentity, listing_data: dict) -> dict:
    """Create a new listing owned by the caller."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").insert({
                **listing_data,
                "user_id": caller.user_id,
            }).execute()
            listing = _first(result)
            if listing:
                return listing
            raise SupabaseError("Failed to create listing: no data returned")
        except Exception as e:
            raise SupabaseError(f"Failed to create listing: {e}")


async def update_listing(caller: CallerIdentity, listing_id: str, updates: dict) -> dict:
    """Update a listing owned by the caller."""
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("listings")
                .update({**updates, "updated_at": _now()})
                .eq("id", listing_id)
                .eq("user_id", caller.user_id)
                .execute()
            )
            listing = _first(result)
            if listing:
                return listing
            raise SupabaseError(f"Failed to update listing: {listing_id}")
        except Exception as e:
            raise SupabaseError(f"Failed to update listing: {e}")


async def soft_delete_listing(caller: CallerIdentity, listing_id: str) -> None:
    """Soft delete a listing by stamping deleted_at."""
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            client.table("listings").update({
                "deleted_at": _now()
            }).eq("id", listing_id).eq("user_id", caller.user_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete listing: {e}")


# Facebook URLs table operations (legacy model)
async def list_facebook_urls(caller: CallerIdentity, listing_id: str) -> list[dict]:
    """Get all Facebook URLs for a listing, newest first."""
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("facebook_urls")
                .select("*")
                .eq("listing_id", listing_id)
                .order("created_at", desc=True)
                .execute()
            )
            return _rows(result)
        except Exception as e:
            raise SupabaseError(f"Failed to get Facebook URLs: {e}")


async def add_facebook_url(caller: CallerIdentity, listing_id: str, facebook_url: str) -> dict:
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            result = client.table("facebook_urls").insert({
                "listing_id": listing_id,
                "facebook_url": facebook_url,
            }).execute()
            row = _first(result)
            if row:
                return row
            raise SupabaseError("Failed to add Facebook URL: no data returned")
        except Exception as e:
            raise SupabaseError(f"Failed to add Facebook URL: {e}")


async def delete_facebook_url(caller: CallerIdentity, listing_id: str, url_id: str) -> None:
    """Delete a Facebook URL. Analytics rows pointing at it are left in place."""
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            client.table("facebook_urls").delete().eq("id", url_id).eq("listing_id", listing_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete Facebook URL: {e}")


# Facebook posts table operations (simplified model)
async def list_facebook_posts(caller: CallerIdentity, listing_id: str) -> list[dict]:
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("facebook_posts")
                .select("*")
                .eq("listing_id", listing_id)
                .order("created_at", desc=True)
                .execute()
            )
            return _rows(result)
        except Exception as e:
            raise SupabaseError(f"Failed to fetch Facebook posts: {e}")


async def add_facebook_post(caller: CallerIdentity, listing_id: str, url: str, views: int = 0) -> dict:
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            result = client.table("facebook_posts").insert({
                "listing_id": listing_id,
                "url": url.strip(),
                "views": views,
            }).execute()
            row = _first(result)
            if row:
                return row
            raise SupabaseError("Failed to add Facebook post: no data returned")
        except Exception as e:
            raise SupabaseError(f"Failed to add Facebook post: {e}")


async def update_facebook_post(
    caller: CallerIdentity,
    listing_id: str,
    post_id: str,
    url: Optional[str] = None,
    views: Optional[int] = None
) -> dict:
    """Update a post. views replaces the stored snapshot, it is never added to it."""
    await require_owned_listing(caller, listing_id)
    updates = {}
    if url is not None:
        updates["url"] = url.strip()
    if views is not None:
        updates["views"] = views
    updates["updated_at"] = _now()

    async with SupabaseClient() as client:
        try:
            result = (
                client.table("facebook_posts")
                .update(updates)
                .eq("id", post_id)
                .eq("listing_id", listing_id)
                .execute()
            )
            row = _first(result)
            if row:
                return row
            raise SupabaseError(f"Failed to update Facebook post: {post_id}")
        except Exception as e:
            raise SupabaseError(f"Failed to update Facebook post: {e}")


async def delete_facebook_post(caller: CallerIdentity, listing_id: str, post_id: str) -> None:
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            client.table("facebook_posts").delete().eq("id", post_id).eq("listing_id", listing_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete Facebook post: {e}")


# Analytics table operations (legacy per-row metrics)
async def list_analytics(
    caller: CallerIdentity,
    listing_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    ascending: bool = False
) -> list[dict]:
    """
    Get analytics rows for one listing, or for all of the caller's listings.

    Date bounds are inclusive ISO dates.
    """
    if listing_id is not None:
        await require_owned_listing(caller, listing_id)
        listing_ids = [listing_id]
    else:
        listing_ids = [listing["id"] for listing in await list_listings(caller)]
        if not listing_ids:
            return []

    async with SupabaseClient() as client:
        try:
            query = (
                client.table("analytics")
                .select("*")
                .in_("listing_id", listing_ids)
                .order("metric_date", desc=not ascending)
            )
            if start_date:
                query = query.gte("metric_date", start_date)
            if end_date:
                query = query.lte("metric_date", end_date)
            return _rows(query.execute())
        except Exception as e:
            raise SupabaseError(f"Failed to get analytics: {e}")


async def upsert_analytics(caller: CallerIdentity, listing_id: str, entry: dict) -> dict:
    """Insert or replace the analytics row for (listing, facebook_url, date)."""
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            result = client.table("analytics").upsert(
                {**entry, "listing_id": listing_id},
                on_conflict=ANALYTICS_CONFLICT_TARGET,
            ).execute()
            row = _first(result)
            if row:
                return row
            raise SupabaseError("Failed to upsert analytics: no data returned")
        except Exception as e:
            raise SupabaseError(f"Failed to upsert analytics: {e}")


async def update_analytics(caller: CallerIdentity, listing_id: str, entry_id: str, updates: dict) -> dict:
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("analytics")
                .update({**updates, "updated_at": _now()})
                .eq("id", entry_id)
                .eq("listing_id", listing_id)
                .execute()
            )
            row = _first(result)
            if row:
                return row
            raise SupabaseError(f"Failed to update analytics entry: {entry_id}")
        except Exception as e:
            raise SupabaseError(f"Failed to update analytics entry: {e}")


async def delete_analytics(caller: CallerIdentity, listing_id: str, entry_id: str) -> None:
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            client.table("analytics").delete().eq("id", entry_id).eq("listing_id", listing_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete analytics entry: {e}")


# Platform metrics table operations
async def list_platform_metrics(
    caller: CallerIdentity,
    listing_id: str,
    platform: Optional[str] = None
) -> list[dict]:
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            query = (
                client.table("platform_metrics")
                .select("*")
                .eq("listing_id", listing_id)
                .order("metric_date", desc=True)
            )
            if platform:
                query = query.eq("platform", platform)
            return _rows(query.execute())
        except Exception as e:
            raise SupabaseError(f"Failed to get platform metrics: {e}")


async def upsert_platform_metric(caller: CallerIdentity, listing_id: str, metric: dict) -> dict:
    """Insert or replace the platform metric row for (listing, platform, date)."""
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            result = client.table("platform_metrics").upsert(
                {**metric, "listing_id": listing_id},
                on_conflict=PLATFORM_METRICS_CONFLICT_TARGET,
            ).execute()
            row = _first(result)
            if row:
                return row
            raise SupabaseError("Failed to add platform metrics: no data returned")
        except Exception as e:
            raise SupabaseError(f"Failed to add platform metrics: {e}")


async def delete_platform_metric(caller: CallerIdentity, listing_id: str, metric_id: str) -> None:
    await require_owned_listing(caller, listing_id)
    async with SupabaseClient() as client:
        try:
            client.table("platform_metrics").delete().eq("id", metric_id).eq("listing_id", listing_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete platform metric: {e}")


# Facebook metrics table operations (legacy model, keyed by facebook_url)
async def _facebook_url_ids(caller: CallerIdentity, listing_id: str) -> list[str]:
    return [row["id"] for row in await list_facebook_urls(caller, listing_id)]


async def list_facebook_metrics(caller: CallerIdentity, listing_id: str) -> list[dict]:
    """Get all Facebook metric rows for a listing's tracked Facebook URLs."""
    url_ids = await _facebook_url_ids(caller, listing_id)
    if not url_ids:
        return []

    async with SupabaseClient() as client:
        try:
            result = (
                client.table("facebook_metrics")
                .select("*")
                .in_("facebook_url_id", url_ids)
                .order("metric_date", desc=True)
                .execute()
            )
            return _rows(result)
        except Exception as e:
            raise SupabaseError(f"Failed to get Facebook metrics: {e}")


async def upsert_facebook_metric(caller: CallerIdentity, listing_id: str, metric: dict) -> dict:
    """Insert or replace the Facebook metric row for (facebook_url, date)."""
    url_ids = await _facebook_url_ids(caller, listing_id)
    if metric.get("facebook_url_id") not in url_ids:
        raise NotFoundError(f"Facebook URL not found: {metric.get('facebook_url_id')}")

    async with SupabaseClient() as client:
        try:
            result = client.table("facebook_metrics").upsert(
                metric,
                on_conflict=FACEBOOK_METRICS_CONFLICT_TARGET,
            ).execute()
            row = _first(result)
            if row:
                return row
            raise SupabaseError("Failed to add Facebook metrics: no data returned")
        except Exception as e:
            raise SupabaseError(f"Failed to add Facebook metrics: {e}")


async def delete_facebook_metric(caller: CallerIdentity, listing_id: str, metric_id: str) -> None:
    url_ids = await _facebook_url_ids(caller, listing_id)
    if not url_ids:
        raise NotFoundError(f"Facebook metric not found: {metric_id}")

    async with SupabaseClient() as client:
        try:
            client.table("facebook_metrics").delete().eq("id", metric_id).in_("facebook_url_id", url_ids).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete Facebook metric: {e}")
