"""Listing image storage on Supabase Storage."""

import os
import time
from typing import Optional
from listing_traffic.models.caller import CallerIdentity
from listing_traffic.services.supabase_client import SupabaseClient, require_owned_listing
from listing_traffic.utils.errors import StorageError
from listing_traffic.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

BUCKET_NAME = os.environ.get("LISTING_IMAGES_BUCKET", "listing-images")
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
ALLOWED_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"]


def validate_image(content: bytes, content_type: Optional[str]) -> None:
    """Reject disallowed MIME types and files over the size cap."""
    if content_type not in ALLOWED_TYPES:
        raise StorageError(f"Invalid file type. Allowed types: {', '.join(ALLOWED_TYPES)}")
    if len(content) > MAX_FILE_SIZE:
        raise StorageError(f"File size exceeds {MAX_FILE_SIZE // 1024 // 1024}MB limit")


def build_image_path(user_id: str, listing_id: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """Storage path scoped by user and listing: {user_id}/{listing_id}/{epoch_ms}.{ext}"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    return f"{user_id}/{listing_id}/{timestamp_ms}.{extension}"


async def upload_listing_image(
    caller: CallerIdentity,
    listing_id: str,
    filename: str,
    content: bytes,
    content_type: str
) -> dict:
    """Upload an image for a listing and return its public URL and storage path."""
    validate_image(content, content_type)
    await require_owned_listing(caller, listing_id)

    path = build_image_path(caller.user_id, listing_id, filename)
    async with SupabaseClient() as client:
        try:
            bucket = client.storage.from_(BUCKET_NAME)
            bucket.upload(
                path,
                content,
                {"content-type": content_type, "cache-control": "3600", "upsert": "false"},
            )
            public_url = bucket.get_public_url(path)
        except Exception as e:
            raise StorageError(f"Failed to upload image: {e}")

    logger.info("Uploaded listing image", listing_id=listing_id, path=path, size_bytes=len(content))
    return {"url": public_url, "path": path}


async def delete_listing_image(image_path: str) -> None:
    async with SupabaseClient() as client:
        try:
            client.storage.from_(BUCKET_NAME).remove([image_path])
        except Exception as e:
            raise StorageError(f"Failed to delete image: {e}")


async def get_image_public_url(image_path: str) -> str:
    async with SupabaseClient() as client:
        return client.storage.from_(BUCKET_NAME).get_public_url(image_path)
