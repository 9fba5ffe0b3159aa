"""CSV export of a listing's analytics rows."""

from listing_traffic.services.csv_export import export_listing_analytics
from listing_traffic.utils.errors import NotFoundError
from listing_traffic.utils.http import ApiHandler, run_coroutine


class handler(ApiHandler):
    """GET /api/reports/export_csv?listing_id=<id>"""

    generic_error = "Failed to export analytics"

    def handle_get(self):
        caller = self.caller()
        listing_id = self.path_param("listing_id", after="reports")
        if not listing_id:
            raise NotFoundError("Listing not found")

        filename, content = run_coroutine(export_listing_analytics(caller, listing_id))
        self.send_body(200, content.encode("utf-8"), "text/csv; charset=utf-8", {
            "Content-Disposition": f'attachment; filename="{filename}"',
        })
