"""PDF traffic report download for one listing."""

from listing_traffic.services.reports import generate_pdf_report
from listing_traffic.utils.errors import NotFoundError
from listing_traffic.utils.http import ApiHandler, run_coroutine


class handler(ApiHandler):
    """
    GET /api/reports/pdf?listing_id=<id>

    ``?source=analytics`` renders from legacy analytics rows only.
    """

    generic_error = "Failed to generate PDF"

    def handle_get(self):
        caller = self.caller()
        listing_id = self.path_param("listing_id", after="reports")
        if not listing_id:
            raise NotFoundError("Listing not found")

        filename, pdf = run_coroutine(generate_pdf_report(caller, listing_id, source=self.query.get("source")))
        self.send_body(200, pdf, "application/pdf", {
            "Content-Disposition": f'attachment; filename="{filename}"',
        })
