from datetime import datetime, timedelta, timezone

import pytest

from visit_browser.time_interpretation import (
    format_duration,
    get_now,
    get_time_interpretation,
    parse_now,
    resolve_timezone,
)

NOW = datetime(2025, 3, 23, 13, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "duration, expected",
    [
        (timedelta(days=2, hours=5), "2 days"),
        (timedelta(days=1), "1 day"),
        (timedelta(hours=1, minutes=59), "1 hour"),
        (timedelta(minutes=5, seconds=30), "5 minutes"),
        (timedelta(seconds=1), "1 second"),
        (timedelta(0), "0 seconds"),
    ],
)
def test_format_duration_uses_largest_unit(duration, expected):
    assert format_duration(duration) == expected


def test_interpretation_relative_to_window():
    hour = timedelta(hours=1)
    assert get_time_interpretation(NOW, NOW + 2 * hour, NOW + 3 * hour) == "Starts in 2 hours"
    assert get_time_interpretation(NOW, NOW - 2 * hour, NOW - timedelta(minutes=5)) == "Ended 5 minutes ago"
    assert get_time_interpretation(NOW, NOW - hour, NOW + hour) == "Ongoing"
    assert get_time_interpretation(NOW, NOW, NOW) == "Ongoing"


def test_interpretation_with_one_bound():
    assert get_time_interpretation(NOW, NOW - timedelta(minutes=10), None) == "10 minutes ago"
    assert get_time_interpretation(NOW, NOW + timedelta(days=1), None) == "Starts in 1 day"
    assert get_time_interpretation(NOW, None, NOW + timedelta(hours=1)) == "Ends in 1 hour"
    assert get_time_interpretation(NOW, None, NOW - timedelta(hours=3)) == "Ended 3 hours ago"
    assert get_time_interpretation(NOW, None, None) is None


def test_parse_now_accepts_iso_overrides():
    assert parse_now("2025-03-23T13:30:00Z") == NOW
    assert parse_now("2025-03-23T09:30:00", "America/New_York") == NOW
    assert parse_now("2025-03-23T13:30:00+00:00").tzinfo is not None
    assert parse_now("not a time") is None
    assert parse_now("") is None
    assert parse_now(None) is None


def test_get_now_falls_back_to_the_clock():
    assert get_now("2025-03-23T13:30:00Z") == NOW
    fallback = get_now("garbage")
    assert fallback.tzinfo is not None
    assert abs(fallback - datetime.now(timezone.utc)) < timedelta(minutes=1)


def test_unknown_timezone():
    with pytest.raises(ValueError, match="Unknown timezone"):
        resolve_timezone("Mars/Olympus_Mons")
