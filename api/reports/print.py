"""Print-optimized HTML report for one listing."""

from listing_traffic.services.reports import generate_print_report
from listing_traffic.utils.errors import NotFoundError
from listing_traffic.utils.http import ApiHandler, run_coroutine


class handler(ApiHandler):
    """GET /api/reports/print?listing_id=<id>[&source=analytics]"""

    generic_error = "Failed to render report"

    def handle_get(self):
        caller = self.caller()
        listing_id = self.path_param("listing_id", after="reports")
        if not listing_id:
            raise NotFoundError("Listing not found")

        html = run_coroutine(generate_print_report(caller, listing_id, source=self.query.get("source")))
        self.send_body(200, html.encode("utf-8"), "text/html; charset=utf-8")
