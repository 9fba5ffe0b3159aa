"""Health check endpoint."""

from listing_traffic.utils.http import ApiHandler


class handler(ApiHandler):
    """Health check handler for Vercel serverless function."""

    def handle_get(self):
        self.send_json(200, {"status": "ok", "service": "listing-traffic-backend"})

    def handle_post(self):
        """Same as GET for health check."""
        self.handle_get()
