"""Bind parsed HAR rows to listings by the MLS number embedded in the listing name."""

import re
from typing import Iterable, Optional

from listing_traffic.models.har_traffic import HarTrafficEntry, UnmatchedEntry
from listing_traffic.services.har_traffic import normalize_mls

_MLS_IN_NAME_RE = re.compile(r"\b\d{5,}\b")


def extract_listing_mls(name: Optional[str]) -> Optional[str]:
    """First standalone run of five or more digits in a listing name."""
    match = _MLS_IN_NAME_RE.search(name or "")
    return normalize_mls(match.group()) if match else None


def build_mls_index(listings: Iterable[dict]) -> dict[str, str]:
    """Map normalized MLS number -> listing id; listings without one are left out."""
    index: dict[str, str] = {}
    for listing in listings:
        mls = extract_listing_mls(listing.get("name"))
        if mls:
            index[mls] = listing["id"]
    return index


def match_entries(
    entries: Iterable[HarTrafficEntry],
    index: dict[str, str]
) -> tuple[list[tuple[HarTrafficEntry, str]], list[UnmatchedEntry]]:
    """Split entries into (entry, listing_id) matches and unmatched rows. Exact equality only."""
    matched: list[tuple[HarTrafficEntry, str]] = []
    unmatched: list[UnmatchedEntry] = []
    for entry in entries:
        listing_id = index.get(entry.mls_number)
        if listing_id is None:
            unmatched.append(UnmatchedEntry(mls_number=entry.mls_number, address=entry.address))
        else:
            matched.append((entry, listing_id))
    return matched, unmatched
