"""Normalized metrics for one listing."""

from listing_traffic.services.reports import listing_metrics_view
from listing_traffic.utils.errors import NotFoundError
from listing_traffic.utils.http import ApiHandler, run_coroutine


class handler(ApiHandler):
    """
    GET /api/listings/metrics?listing_id=<id>

    Includes the listing's daily analytics trend alongside the normalized summary.
    """

    def handle_get(self):
        caller = self.caller()
        listing_id = self.path_param("listing_id", after="listings")
        if not listing_id:
            raise NotFoundError("Listing not found")

        self.send_json(200, run_coroutine(listing_metrics_view(caller, listing_id)))
