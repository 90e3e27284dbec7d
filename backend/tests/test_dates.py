"""
Tests for travel-day normalization and weekday numbering.
"""

from datetime import date, datetime, timezone

import pytest

from coachline.core.exceptions import InvalidDateError
from coachline.services.dates import (
    format_date_key,
    normalize_travel_date,
    weekday_number,
)


def test_date_only_is_midnight_utc():
    travel_day = normalize_travel_date("2024-12-25")
    assert travel_day == datetime(2024, 12, 25, tzinfo=timezone.utc)
    assert format_date_key("2024-12-25") == "2024-12-25"


def test_afternoon_timestamp_rolls_to_next_day():
    assert format_date_key("2024-12-25T14:00:00Z") == "2024-12-26"
    assert format_date_key("2024-12-25T23:00:00Z") == "2024-12-26"


def test_morning_timestamp_keeps_its_day():
    assert format_date_key("2024-12-25T11:59:59Z") == "2024-12-25"
    assert format_date_key("2024-12-25T00:00:00.000Z") == "2024-12-25"


def test_offset_timestamp_is_converted_to_utc_first():
    # Local midnight in Chisinau (UTC+2) is 22:00 UTC the previous day
    assert format_date_key("2024-12-25T00:00:00+02:00") == "2024-12-25"


def test_accepts_date_and_datetime_objects():
    assert format_date_key(date(2024, 3, 1)) == "2024-03-01"
    assert format_date_key(datetime(2024, 3, 1, 13, 0, tzinfo=timezone.utc)) == "2024-03-02"


def test_normalization_is_idempotent():
    once = normalize_travel_date("2024-12-25T14:00:00Z")
    assert normalize_travel_date(once) == once


@pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2024-13-45", None, 20241225])
def test_invalid_dates_rejected(value):
    with pytest.raises(InvalidDateError):
        normalize_travel_date(value)


def test_weekday_number_starts_on_sunday():
    assert weekday_number(normalize_travel_date("2024-12-22")) == 0  # Sunday
    assert weekday_number(normalize_travel_date("2024-12-26")) == 4  # Thursday
    assert weekday_number(normalize_travel_date("2024-12-28")) == 6  # Saturday


def test_last_representable_afternoon_is_rejected():
    with pytest.raises(InvalidDateError):
        normalize_travel_date("9999-12-31T13:00:00Z")
    # Mornings of the last day still normalize
    assert normalize_travel_date("9999-12-31T08:00:00Z").date() == date(9999, 12, 31)
