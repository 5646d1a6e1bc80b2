"""
Tests for the time source.
"""

from datetime import datetime, timedelta

import pytz

from openhours.clock import TimeSource


def fixed(moment: datetime):
    return lambda: moment


class TestTimeSource:
    """Civil weekday/minute in Europe/London across clock changes."""

    def test_summer_time(self):
        """19:09 UTC in July is 20:09 BST on a Sunday."""
        source = TimeSource("Europe/London", clock=fixed(datetime(2025, 7, 6, 19, 9, tzinfo=pytz.utc)))
        instant = source.now()

        assert instant.weekday == 0
        assert instant.minute_of_day == 20 * 60 + 9

    def test_winter_time(self):
        source = TimeSource("Europe/London", clock=fixed(datetime(2025, 1, 5, 20, 9, tzinfo=pytz.utc)))
        instant = source.now()

        assert instant.weekday == 0
        assert instant.minute_of_day == 20 * 60 + 9

    def test_offset_moves_the_day(self):
        """23:30 UTC on Saturday is already Sunday 00:30 in BST."""
        source = TimeSource("Europe/London", clock=fixed(datetime(2025, 7, 5, 23, 30, tzinfo=pytz.utc)))
        instant = source.now()

        assert instant.weekday == 0
        assert instant.minute_of_day == 30
        assert source.today().isoformat() == "2025-07-06"

    def test_naive_clock_is_utc(self):
        source = TimeSource("Europe/London", clock=fixed(datetime(2025, 7, 6, 19, 9)))
        assert source.now().minute_of_day == 20 * 60 + 9

    def test_unknown_timezone_falls_back_to_utc(self):
        source = TimeSource("Mars/Olympus_Mons", clock=fixed(datetime(2025, 7, 6, 19, 9, tzinfo=pytz.utc)))

        assert source.fallback_to_utc is True
        assert source.now().minute_of_day == 19 * 60 + 9

    def test_localize_wall_clock(self):
        source = TimeSource("Europe/London")
        local = source.localize(datetime(2025, 7, 6, 20, 9))

        assert local.hour == 20
        assert local.utcoffset() == timedelta(hours=1)

    def test_instant_at_weekdays(self):
        """Python's Monday=0 becomes Sunday=0."""
        assert TimeSource.instant_at(datetime(2025, 1, 5, 12, 0)).weekday == 0  # Sunday
        assert TimeSource.instant_at(datetime(2025, 1, 6, 12, 0)).weekday == 1  # Monday
        assert TimeSource.instant_at(datetime(2025, 1, 11, 12, 0)).weekday == 6  # Saturday
