from datetime import date, datetime

import pytest

from src.campus_attendance.campus_attendance.common.datetime_utils import day_window, parse_iso_datetime
from src.campus_attendance.campus_attendance.common.serialization import to_jsonable
from src.campus_attendance.campus_attendance.common.validators import (
    require_date,
    require_enum,
    require_hex_color,
    require_int,
    require_max_length,
    require_non_empty,
)
from src.campus_attendance.campus_attendance.core.enums import AttendanceStatus, DayOfWeek
from src.campus_attendance.campus_attendance.core.exceptions import ValidationError


def test_require_int_accepts_digit_strings():
    assert require_int("7", "Duration") == 7
    assert require_int(3, "Duration", min_value=1, max_value=4) == 3


@pytest.mark.parametrize("value", [None, True, "abc", 1.5, "²"])
def test_require_int_rejects_non_integers(value):
    with pytest.raises(ValidationError):
        require_int(value, "Duration")


def test_require_int_bounds():
    with pytest.raises(ValidationError) as exc:
        require_int(5, "Duration", max_value=4)
    assert str(exc.value) == "Duration must be at most 4"


def test_require_enum_lists_allowed_values():
    assert require_enum("friday", DayOfWeek, "Day") == DayOfWeek.FRIDAY
    with pytest.raises(ValidationError) as exc:
        require_enum("funday", DayOfWeek, "Day")
    assert "monday" in str(exc.value)


def test_strings():
    assert require_non_empty("  Room 1 ", "Room") == "Room 1"
    with pytest.raises(ValidationError):
        require_non_empty("   ", "Room")
    with pytest.raises(ValidationError):
        require_max_length("x" * 501, "Remarks", 500)
    assert require_max_length(None, "Remarks", 500) is None


@pytest.mark.parametrize("value", ["#FFF", "#a1b2c3"])
def test_hex_color_ok(value):
    assert require_hex_color(value, "Color") == value


@pytest.mark.parametrize("value", ["FFF", "#GGGGGG", "#1234", None])
def test_hex_color_rejected(value):
    with pytest.raises(ValidationError):
        require_hex_color(value, "Color")


def test_dates():
    assert require_date("2026-03-02", "Start date") == date(2026, 3, 2)
    with pytest.raises(ValidationError):
        require_date("02/03/2026", "Start date")


def test_day_window_is_inclusive_of_whole_days():
    start, end = day_window(date(2026, 3, 2), date(2026, 3, 3))

    assert start == datetime(2026, 3, 2, 0, 0, 0)
    assert end == datetime(2026, 3, 3, 23, 59, 59)


def test_naive_timestamps_are_kept_as_is():
    assert parse_iso_datetime("2026-03-02T08:00:00") == datetime(2026, 3, 2, 8, 0, 0)
    assert parse_iso_datetime("2026-03-02T08:00:00Z").tzinfo is None


def test_to_jsonable_handles_enums_and_dates():
    assert to_jsonable({"status": AttendanceStatus.LATE, "on": date(2026, 3, 2), "ids": (1, 2)}) == {
        "status": "late",
        "on": "2026-03-02",
        "ids": [1, 2],
    }


@pytest.mark.parametrize("value", ["²", "1.5", "", " "])
def test_require_int_rejects_malformed_strings(value):
    with pytest.raises(ValidationError) as exc:
        require_int(value, "Semester")
    assert str(exc.value) == "Semester must be an integer"
