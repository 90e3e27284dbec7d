"""
Travel-day normalization.

Every entry point that turns user input into a travel day (trip search,
booking creation, admin closed-date edits) goes through `normalize_travel_date`
so that date-keys compare equal everywhere.

Rule:
  - a bare `YYYY-MM-DD` string is midnight UTC of that day
  - a timestamp whose UTC hour is >= 12 belongs to the *next* travel day
    (a client's local midnight east of UTC lands on the previous UTC afternoon)
  - the result is truncated to UTC midnight
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Union

from coachline.core.exceptions import InvalidDateError

DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

DateInput = Union[str, datetime, date]


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse(value: DateInput) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise InvalidDateError(f"Unsupported date value: {value!r}")

    trimmed = value.strip()
    if not trimmed:
        raise InvalidDateError("Date value cannot be empty")

    try:
        if DATE_ONLY.match(trimmed):
            return datetime.combine(date.fromisoformat(trimmed), time.min, tzinfo=timezone.utc)
        return as_utc(datetime.fromisoformat(trimmed))
    except ValueError as exc:
        raise InvalidDateError("Invalid date value", value=trimmed) from exc


def normalize_travel_date(value: DateInput) -> datetime:
    """Return the canonical travel day (UTC midnight) for a date or timestamp."""
    instant = _parse(value)
    if instant.hour >= 12:
        try:
            instant = instant + timedelta(days=1)
        except OverflowError as exc:
            raise InvalidDateError("Date out of range", value=str(value)) from exc
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def format_date_key(value: DateInput) -> str:
    """`YYYY-MM-DD` key of the normalized travel day."""
    return normalize_travel_date(value).date().isoformat()


def weekday_number(travel_day: datetime) -> int:
    """0=Sunday .. 6=Saturday, evaluated in UTC."""
    return (as_utc(travel_day).weekday() + 1) % 7


def day_names(days: list[int]) -> list[str]:
    return [DAY_NAMES[day] for day in days]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utc_now().date()
