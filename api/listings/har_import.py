"""HAR traffic paste import."""

import json

from listing_traffic.services.har_import import import_har_traffic
from listing_traffic.utils.http import ApiHandler, run_coroutine


def extract_raw_text(body: str, content_type: str) -> str:
    """Raw pasted text from a JSON ``{"raw": ...}`` body or a plain-text body."""
    if "application/json" in (content_type or ""):
        try:
            payload = json.loads(body) if body else {}
        except json.JSONDecodeError:
            return ""
        return payload.get("raw", "") if isinstance(payload, dict) else ""
    return body


class handler(ApiHandler):
    """POST /api/listings/har_import"""

    generic_error = "Failed to import HAR traffic"

    def handle_post(self):
        caller = self.caller()
        raw = extract_raw_text(self.read_body(), self.headers.get("Content-Type", ""))
        result = run_coroutine(import_har_traffic(caller, raw))
        self.send_json(200, result.model_dump())
