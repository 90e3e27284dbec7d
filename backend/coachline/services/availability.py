"""
Availability resolver: may this route be booked on this travel day?

Rules, in order:
  1. If the route has a non-empty weekly schedule, the travel day's weekday
     must be in it (DayNotAvailable)
  2. The travel day's date-key must not be a closed date (DateClosed)

Used read-only by trip search and authoritatively by booking creation, which
re-checks so a route closed between search and booking is still rejected.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from coachline.core.exceptions import DateClosedError, DayNotAvailableError
from coachline.models.route import Route
from coachline.services.dates import day_names, format_date_key, weekday_number

DAY_NOT_AVAILABLE = "day_not_available"
DATE_CLOSED = "date_closed"


@dataclass
class Availability:
    ok: bool
    date_key: str
    reason: Optional[str] = None
    detail: Optional[str] = None
    allowed_days: list[str] = field(default_factory=list)


def check_availability(route: Route, travel_day: datetime) -> Availability:
    date_key = format_date_key(travel_day)

    if route.available_days:
        allowed = sorted(route.available_days)
        if weekday_number(travel_day) not in allowed:
            names = day_names(allowed)
            return Availability(
                ok=False,
                date_key=date_key,
                reason=DAY_NOT_AVAILABLE,
                detail=f"This route is only available on: {', '.join(names)}",
                allowed_days=names,
            )

    if date_key in (route.closed_dates or []):
        return Availability(
            ok=False,
            date_key=date_key,
            reason=DATE_CLOSED,
            detail="Bookings are temporarily closed for the selected date",
        )

    return Availability(ok=True, date_key=date_key)


def ensure_available(route: Route, travel_day: datetime) -> str:
    """Raise the matching RouteUnavailableError subclass; return the date-key otherwise."""
    availability = check_availability(route, travel_day)
    if availability.ok:
        return availability.date_key

    if availability.reason == DAY_NOT_AVAILABLE:
        raise DayNotAvailableError(
            availability.detail,
            travel_date=availability.date_key,
            available_days=sorted(route.available_days),
            available_day_names=availability.allowed_days,
        )
    raise DateClosedError(
        availability.detail,
        travel_date=availability.date_key,
        closed_dates=list(route.closed_dates or []),
    )
