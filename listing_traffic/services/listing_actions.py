"""
User-triggered write actions.

Every action validates its input, requires a caller, performs a single
write and returns an ``ActionResult``. Nothing here raises to the caller:
validation and ownership problems come back as readable messages, and
datastore failures are logged and reported generically.
"""

from typing import Any, Awaitable, Callable, Optional, Type

from pydantic import BaseModel, ValidationError

from listing_traffic.models.action import ActionResult
from listing_traffic.models.caller import CallerIdentity
from listing_traffic.models.forms import (
    AnalyticsEntryForm,
    FacebookMetricForm,
    FacebookPostForm,
    FacebookUrlForm,
    HarSnapshotForm,
    ListingForm,
    PlatformMetricForm,
    first_error_message,
)
from listing_traffic.services import storage
from listing_traffic.services import supabase_client as store
from listing_traffic.utils.errors import InputError, NotFoundError, StorageError
from listing_traffic.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

SIGNED_OUT_MESSAGE = "You must be signed in."


def _validate(form: Type[BaseModel], data: dict) -> BaseModel:
    try:
        return form.model_validate(data)
    except ValidationError as e:
        raise InputError(first_error_message(e))


async def _run(
    action: str,
    caller: Optional[CallerIdentity],
    operation: Callable[[CallerIdentity], Awaitable[Any]]
) -> ActionResult:
    if caller is None:
        return ActionResult.fail(SIGNED_OUT_MESSAGE)

    try:
        data = await operation(caller)
    except (InputError, NotFoundError, StorageError) as e:
        logger.info("Action rejected", action=action, user_id=mask_user_id(caller.user_id), reason=str(e))
        return ActionResult.fail(str(e))
    except Exception:
        logger.error("Action failed", exc_info=True, action=action, user_id=mask_user_id(caller.user_id))
        return ActionResult.fail(f"Failed to {action.replace('_', ' ')}. Please try again.")

    logger.info("Action completed", action=action, user_id=mask_user_id(caller.user_id))
    return ActionResult.ok(data)


# Listings
async def create_listing(caller: Optional[CallerIdentity], data: dict) -> ActionResult:
    async def op(caller: CallerIdentity):
        form = _validate(ListingForm, data)
        return await store.create_listing(caller, form.model_dump())
    return await _run("create_listing", caller, op)


async def update_listing(caller: Optional[CallerIdentity], listing_id: str, data: dict) -> ActionResult:
    async def op(caller: CallerIdentity):
        form = _validate(ListingForm, data)
        return await store.update_listing(caller, listing_id, form.model_dump())
    return await _run("update_listing", caller, op)


async def update_har_snapshot(caller: Optional[CallerIdentity], listing_id: str, data: dict) -> ActionResult:
    async def op(caller: CallerIdentity):
        form = _validate(HarSnapshotForm, data)
        return await store.update_listing(caller, listing_id, form.model_dump())
    return await _run("update_har_snapshot", caller, op)


async def delete_listing(caller: Optional[CallerIdentity], listing_id: str) -> ActionResult:
    async def op(caller: CallerIdentity):
        await store.soft_delete_listing(caller, listing_id)
    return await _run("delete_listing", caller, op)


async def upload_listing_image(
    caller: Optional[CallerIdentity],
    listing_id: str,
    filename: str,
    content: bytes,
    content_type: str
) -> ActionResult:
    """Upload the image and point the listing's image_url at it."""
    async def op(caller: CallerIdentity):
        uploaded = await storage.upload_listing_image(caller, listing_id, filename, content, content_type)
        await store.update_listing(caller, listing_id, {"image_url": uploaded["url"]})
        return uploaded
    return await _run("upload_listing_image", caller, op)


# Facebook URLs
async def add_facebook_url(caller: Optional[CallerIdentity], listing_id: str, facebook_url: str) -> ActionResult:
    async def op(caller: CallerIdentity):
        form = _validate(FacebookUrlForm, {"facebook_url": facebook_url})
        return await store.add_facebook_url(caller, listing_id, form.facebook_url)
    return await _run("add_facebook_url", caller, op)


async def delete_facebook_url(caller: Optional[CallerIdentity], listing_id: str, url_id: str) -> ActionResult:
    async def op(caller: CallerIdentity):
        await store.delete_facebook_url(caller, listing_id, url_id)
    return await _run("delete_facebook_url", caller, op)


# Facebook posts
async def add_facebook_post(caller: Optional[CallerIdentity], listing_id: str, data: dict) -> ActionResult:
    async def op(caller: CallerIdentity):
        form = _validate(FacebookPostForm, data)
        return await store.add_facebook_post(caller, listing_id, form.url, form.views)
    return await _run("add_facebook_post", caller, op)


async def update_facebook_post(
    caller: Optional[CallerIdentity],
    listing_id: str,
    post_id: str,
    data: dict
) -> ActionResult:
    """Replace a post's url and view snapshot."""
    async def op(caller: CallerIdentity):
        form = _validate(FacebookPostForm, data)
        return await store.update_facebook_post(caller, listing_id, post_id, url=form.url, views=form.views)
    return await _run("update_facebook_post", caller, op)


async def delete_facebook_post(caller: Optional[CallerIdentity], listing_id: str, post_id: str) -> ActionResult:
    async def op(caller: CallerIdentity):
        await store.delete_facebook_post(caller, listing_id, post_id)
    return await _run("delete_facebook_post", caller, op)


# Legacy analytics
async def _check_facebook_url(caller: CallerIdentity, listing_id: str, facebook_url_id: Optional[str]) -> None:
    if facebook_url_id is None:
        return
    urls = await store.list_facebook_urls(caller, listing_id)
    if facebook_url_id not in {row["id"] for row in urls}:
        raise NotFoundError("Facebook URL not found for this listing")


async def upsert_analytics_entry(caller: Optional[CallerIdentity], listing_id: str, data: dict) -> ActionResult:
    """Record views/clicks for a date; a second entry for the same key replaces the first."""
    async def op(caller: CallerIdentity):
        form = _validate(AnalyticsEntryForm, data)
        await _check_facebook_url(caller, listing_id, form.facebook_url_id)
        return await store.upsert_analytics(caller, listing_id, form.model_dump())
    return await _run("save_analytics", caller, op)


async def update_analytics_entry(
    caller: Optional[CallerIdentity],
    listing_id: str,
    entry_id: str,
    data: dict
) -> ActionResult:
    async def op(caller: CallerIdentity):
        form = _validate(AnalyticsEntryForm, data)
        await _check_facebook_url(caller, listing_id, form.facebook_url_id)
        return await store.update_analytics(caller, listing_id, entry_id, form.model_dump())
    return await _run("update_analytics", caller, op)


async def delete_analytics_entry(caller: Optional[CallerIdentity], listing_id: str, entry_id: str) -> ActionResult:
    async def op(caller: CallerIdentity):
        await store.delete_analytics(caller, listing_id, entry_id)
    return await _run("delete_analytics", caller, op)


# Platform metrics
async def upsert_platform_metric(caller: Optional[CallerIdentity], listing_id: str, data: dict) -> ActionResult:
    async def op(caller: CallerIdentity):
        form = _validate(PlatformMetricForm, data)
        return await store.upsert_platform_metric(caller, listing_id, form.model_dump(mode="json"))
    return await _run("save_platform_metrics", caller, op)


async def delete_platform_metric(caller: Optional[CallerIdentity], listing_id: str, metric_id: str) -> ActionResult:
    async def op(caller: CallerIdentity):
        await store.delete_platform_metric(caller, listing_id, metric_id)
    return await _run("delete_platform_metric", caller, op)


# Facebook metrics
async def upsert_facebook_metric(caller: Optional[CallerIdentity], listing_id: str, data: dict) -> ActionResult:
    async def op(caller: CallerIdentity):
        form = _validate(FacebookMetricForm, data)
        return await store.upsert_facebook_metric(caller, listing_id, form.model_dump())
    return await _run("save_facebook_metrics", caller, op)


async def delete_facebook_metric(caller: Optional[CallerIdentity], listing_id: str, metric_id: str) -> ActionResult:
    async def op(caller: CallerIdentity):
        await store.delete_facebook_metric(caller, listing_id, metric_id)
    return await _run("delete_facebook_metric", caller, op)
