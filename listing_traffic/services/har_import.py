"""HAR traffic batch import: parse, match against the caller's listings, summarize."""

from typing import Optional

from listing_traffic.models.caller import CallerIdentity
from listing_traffic.models.har_traffic import ImportHarTrafficResult
from listing_traffic.services import supabase_client as store
from listing_traffic.services.har_traffic import parse_har_traffic
from listing_traffic.services.mls_matcher import build_mls_index, match_entries
from listing_traffic.utils.errors import AuthenticationError, HarImportError
from listing_traffic.utils.logging import get_structured_logger, log_timing, mask_user_id

logger = get_structured_logger(__name__)

NO_ROWS_ERROR = "No HAR traffic rows detected. Please double-check the pasted data."


async def import_har_traffic(caller: Optional[CallerIdentity], raw: str) -> ImportHarTrafficResult:
    """
    Import pasted HAR traffic text.

    Matched rows are counted but not written: the listing snapshot columns
    the import used to update are superseded by platform_metrics, and no
    replacement target has been chosen. ``updated`` is therefore always 0.

    Raises:
        HarImportError: Nothing parseable in ``raw``
        AuthenticationError: No caller
    """
    parsed = parse_har_traffic(raw)
    if parsed.errors:
        raise HarImportError(parsed.errors[0])
    if not parsed.entries:
        raise HarImportError(NO_ROWS_ERROR)

    if caller is None:
        raise AuthenticationError("You must be signed in to import HAR traffic.")

    with log_timing("import_har_traffic", logger=logger, user_id=mask_user_id(caller.user_id)):
        listings = await store.list_listings(caller)
        matched, unmatched = match_entries(parsed.entries, build_mls_index(listings))

    if matched:
        logger.info(
            "HAR import matched rows; write-back is disabled",
            matched=len(matched),
            listing_ids=sorted({listing_id for _, listing_id in matched}),
        )

    return ImportHarTrafficResult(
        total_rows=len(parsed.entries),
        matched=len(matched),
        updated=0,
        unmatched=unmatched,
        errors=[],
        warnings=parsed.warnings,
    )
