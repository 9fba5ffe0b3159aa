"""Portfolio dashboard: totals, trend and per-listing performance."""

import asyncio
from datetime import date
from typing import Optional

from listing_traffic.models.caller import CallerIdentity
from listing_traffic.services.aggregation import analytics_trend, listing_performance, portfolio_summary
from listing_traffic.utils.errors import InputError
from listing_traffic.utils.http import ApiHandler, run_coroutine


def parse_date_param(value: Optional[str], name: str) -> Optional[str]:
    if not value:
        return None
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError:
        raise InputError(f"{name} must be in YYYY-MM-DD format")


async def build_dashboard(caller: CallerIdentity, start_date: Optional[str], end_date: Optional[str]) -> dict:
    summary, trend, performance = await asyncio.gather(
        portfolio_summary(caller, start_date=start_date, end_date=end_date),
        analytics_trend(caller, start_date=start_date, end_date=end_date),
        listing_performance(caller, start_date=start_date, end_date=end_date),
    )
    # Most engaged first
    performance.sort(key=lambda row: row.total_views + row.total_clicks, reverse=True)
    return {
        "summary": summary.model_dump(),
        "trend": [point.model_dump() for point in trend],
        "listings": [row.model_dump() for row in performance],
    }


class handler(ApiHandler):
    """GET /api/analytics/dashboard[?start_date=&end_date=]"""

    def handle_get(self):
        caller = self.caller()
        start_date = parse_date_param(self.query.get("start_date"), "start_date")
        end_date = parse_date_param(self.query.get("end_date"), "end_date")
        self.send_json(200, run_coroutine(build_dashboard(caller, start_date, end_date)))
