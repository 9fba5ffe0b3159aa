"""
Parser for HAR.com traffic tables pasted by an operator.

Input is whatever the browser put on the clipboard: usually tab-separated,
sometimes space-padded, occasionally with a logical row wrapped across two
physical lines. Parsing never raises; unusable rows become warnings.
"""

import re
from typing import Optional

from listing_traffic.models.har_traffic import HarParseResult, HarTrafficEntry
from listing_traffic.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

STATUS_MAP = {
    "A": "Active",
    "P": "Pending",
    "S": "Sold",
    "PS": "Pending Continue to Show",
    "OP": "Option Pending",
    "T": "Temporarily Off Market",
}

EXPECTED_COLUMNS = 7

# Address and MLS number plus at least one figure
MIN_COLUMNS = 3

NO_DATA_ERROR = "No data provided."

_HEADER_RE = re.compile(r"mls#|mls number", re.IGNORECASE)
_SPACES_RE = re.compile(r"\s{2,}")
_LEADING_INT_RE = re.compile(r"^[+-]?\d+")


def split_columns(line: str) -> list[str]:
    """Split on tabs when present, otherwise on runs of two or more spaces."""
    if "\t" in line:
        return [part.strip() for part in line.split("\t")]
    return [part.strip() for part in _SPACES_RE.split(line)]


def normalize_mls(value: Optional[str]) -> Optional[str]:
    """Digits only; None when nothing is left."""
    if not value:
        return None
    digits = re.sub(r"[^0-9]", "", value)
    return digits or None


def number_or_null(value: Optional[str]) -> Optional[int]:
    """Parse a leading integer after dropping thousands separators."""
    if not value:
        return None
    cleaned = value.replace(",", "").strip()
    match = _LEADING_INT_RE.match(cleaned)
    return int(match.group()) if match else None


def map_status(value: Optional[str]) -> Optional[str]:
    status = (value or "").strip()
    if not status:
        return None
    return STATUS_MAP.get(status.upper(), status)


def _data_lines(raw: str) -> list[str]:
    lines = [line.strip() for line in raw.replace("\r\n", "\n").replace("\r", "\n").split("\n")]
    lines = [line for line in lines if line]

    for index, line in enumerate(lines):
        if _HEADER_RE.search(line):
            return lines[index + 1:]
    return lines


def _column(parts: list[str], index: int) -> Optional[str]:
    return parts[index] if index < len(parts) else None


def parse_har_traffic(raw: Optional[str]) -> HarParseResult:
    """
    Parse pasted HAR traffic text.

    Columns map in order to address, MLS number, days on market, status code,
    desktop views, mobile views and photo views. A line with fewer than seven
    columns is merged with the next one when that reaches seven.

    Args:
        raw: Pasted text, possibly empty

    Returns:
        HarParseResult; ``errors`` is set only when there is nothing to parse
    """
    result = HarParseResult()

    if not raw or not raw.strip():
        result.errors.append(NO_DATA_ERROR)
        return result

    lines = _data_lines(raw)
    i = 0
    while i < len(lines):
        parts = split_columns(lines[i])

        if len(parts) < EXPECTED_COLUMNS and i + 1 < len(lines):
            merged = parts + split_columns(lines[i + 1])
            if len(merged) >= EXPECTED_COLUMNS:
                parts = merged
                i += 1

        line_number = i + 1
        i += 1

        if len(parts) < MIN_COLUMNS:
            result.warnings.append(f"Skipping line {line_number}: not enough columns to parse MLS number.")
            continue

        address = _column(parts, 0) or None
        mls_number = normalize_mls(_column(parts, 1))
        if not mls_number:
            result.warnings.append(f'Skipping row with address "{address or "Unknown"}": MLS number missing.')
            continue

        result.entries.append(HarTrafficEntry(
            address=address,
            mls_number=mls_number,
            days_on_market=number_or_null(_column(parts, 2)),
            status=map_status(_column(parts, 3)),
            desktop_views=number_or_null(_column(parts, 4)),
            mobile_views=number_or_null(_column(parts, 5)),
            photo_views=number_or_null(_column(parts, 6)),
        ))

    logger.debug(
        "HAR traffic parsed",
        lines=len(lines),
        entries=len(result.entries),
        warnings=len(result.warnings),
    )
    return result
