"""
Data validation utilities.
"""

from typing import Any

from ..errors import MalformedSchedule
from ..models import MINUTES_PER_DAY, DayHours, WeeklySchedule


class ScheduleValidator:
    """Guards the canonical schedule invariants."""

    @staticmethod
    def is_valid_minute(minute: Any) -> bool:
        return isinstance(minute, int) and 0 <= minute < MINUTES_PER_DAY

    @staticmethod
    def is_valid_day(day: Any) -> bool:
        """A day is either closed (None) or an in-range open/close pair."""
        if day is None:
            return True
        if not isinstance(day, DayHours):
            return False
        return (
            ScheduleValidator.is_valid_minute(day.open_minute)
            and ScheduleValidator.is_valid_minute(day.close_minute)
        )

    @staticmethod
    def validate(schedule: Any) -> WeeklySchedule:
        """
        Check a schedule is complete before it leaves the normalizer or
        enters the cache.

        Raises:
            MalformedSchedule: fewer or more than 7 days, or an invalid day
        """
        if not isinstance(schedule, WeeklySchedule):
            raise MalformedSchedule(f"expected WeeklySchedule, got {type(schedule).__name__}")

        if len(schedule.days) != 7:
            raise MalformedSchedule(f"{len(schedule.days)} day(s) instead of 7")

        for weekday, day in enumerate(schedule.days):
            if not ScheduleValidator.is_valid_day(day):
                raise MalformedSchedule(f"invalid hours for weekday {weekday}: {day!r}")

        return schedule
