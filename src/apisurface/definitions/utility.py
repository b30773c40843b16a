from __future__ import annotations

from datetime import datetime
from typing import Any

from apisurface.domain.models import Endpoint, HandlerArgs


def get_current_date(ctx: Any, client: Any, args: HandlerArgs) -> dict[str, Any]:
    now = datetime.now().astimezone()
    return {
        "date": now.strftime("%Y-%m-%d"),
        "year": now.year,
        "month": now.month,
        "month_name": now.strftime("%B"),
        "day": now.day,
        "weekday": now.strftime("%A"),
        "iso8601": now.isoformat(timespec="seconds"),
    }


# Endpoints that answer locally without calling the wrapped API.
UTILITY_ENDPOINTS = [
    Endpoint(
        name="GetCurrentDate",
        service="Utility",
        cassette="none",
        tool_name="get_current_date",
        short="Get current date",
        long=(
            "Get the current date including year, month, day, and weekday. "
            "Useful for determining what date to use for other API calls."
        ),
        handler=get_current_date,
    ),
]
