"""
Opening hours normalization service.
Turns any extractor output into the canonical 7-day schedule.
"""

import re
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from ..errors import MalformedSchedule
from ..models import (
    MINUTES_PER_DAY,
    DayHours,
    ExtractedDay,
    PartialWeeklyHours,
    RawPeriod,
    WeeklySchedule,
    is_always_open,
)
from ..utils import get_logger
from ..utils.patterns import HOURS_24_HOURS, HOURS_CLOSED, TIME_RANGE_PATTERN, clean_fragment
from ..utils.validators import ScheduleValidator


class HoursNormalizer:
    """
    Normalize extracted hours to the canonical weekly schedule.
    - Sunday→Saturday, always 7 entries
    - Missing day = closed
    - Close at or before open = closes after midnight
    """

    @staticmethod
    def to_minutes(hour: int, minute: int = 0, meridiem: Optional[str] = None) -> int:
        """
        Convert a clock time to minute-of-day.

        With a meridiem the hour is 12-hour: 12 am → 0:00, 12 pm stays 12:00,
        other pm hours add 12. Without one the hour is 24-hour and 24 means
        the midnight that ends the day (0).
        """
        if meridiem:
            marker = meridiem.lower().replace('.', '')
            if not 1 <= hour <= 12:
                raise ValueError(f"Invalid 12-hour time: {hour}:{minute:02d} {meridiem}")
            if marker == 'am':
                hour = 0 if hour == 12 else hour
            elif marker == 'pm':
                hour = hour if hour == 12 else hour + 12
            else:
                raise ValueError(f"Invalid meridiem: {meridiem!r}")
        elif not 0 <= hour <= 24:
            raise ValueError(f"Invalid 24-hour time: {hour}:{minute:02d}")

        if not 0 <= minute <= 59:
            raise ValueError(f"Invalid minute: {minute}")

        return (hour * 60 + minute) % MINUTES_PER_DAY

    @staticmethod
    def parse_time_range(text: str) -> Optional[tuple]:
        """
        Parse an AM/PM range such as "9 am–5:30 pm" to (open_minute, close_minute).

        The opening meridiem may be left off ("12–10:30 pm"); it is taken from
        the closing time, or flipped when that would open after a pm close
        ("11–2 pm" → 11:00–14:00). A closing time without a meridiem takes
        the opening one unless that would close at or before opening
        ("9 am–5" → 09:00–17:00, "6 pm–2" → 18:00–02:00). Several ranges
        ("9 am–1 pm, 2–5 pm") give the span from the first opening to the
        last closing.

        Returns None when the text has no usable AM/PM range.
        """
        ranges = []
        for match in TIME_RANGE_PATTERN.finditer(clean_fragment(text)):
            parsed = HoursNormalizer._resolve_range(match)
            if parsed is not None:
                ranges.append(parsed)

        if not ranges:
            return None

        return ranges[0][0], ranges[-1][1]

    @staticmethod
    def _resolve_range(match: re.Match) -> Optional[tuple]:
        open_hour, open_min, open_mer, close_hour, close_min, close_mer = match.groups()

        # Bare numbers are not AM/PM text
        if not open_mer and not close_mer:
            return None

        try:
            close_minute = HoursNormalizer.to_minutes(
                int(close_hour), int(close_min or 0), close_mer or open_mer
            )
            if open_mer:
                open_minute = HoursNormalizer.to_minutes(int(open_hour), int(open_min or 0), open_mer)
                # "9 am–5" closes at 5 pm, not overnight
                if not close_mer and close_minute <= open_minute:
                    flipped = 'pm' if open_mer.lower().startswith('a') else 'am'
                    close_minute = HoursNormalizer.to_minutes(int(close_hour), int(close_min or 0), flipped)
                return open_minute, close_minute

            open_minute = HoursNormalizer.to_minutes(int(open_hour), int(open_min or 0), close_mer)
            if close_mer.lower().startswith('p') and open_minute > close_minute:
                open_minute = HoursNormalizer.to_minutes(int(open_hour), int(open_min or 0), 'am')
            return open_minute, close_minute

        except ValueError:
            return None

    @staticmethod
    def parse_day_text(weekday: int, text: str) -> Optional[ExtractedDay]:
        """
        Parse one weekday's hours text.
        Examples:
          "9 am–12 am"     → open 540, close 0 (closes at midnight)
          "Closed"         → closed
          "Open 24 hours"  → open 0, close 0
        """
        cleaned = clean_fragment(text)
        if not cleaned:
            return None

        if HOURS_CLOSED.search(cleaned):
            return ExtractedDay(weekday=weekday, closed=True, text=cleaned)

        if HOURS_24_HOURS.search(cleaned):
            return ExtractedDay(weekday=weekday, open_minute=0, close_minute=0, text=cleaned)

        parsed = HoursNormalizer.parse_time_range(cleaned)
        if parsed is None:
            return None

        open_minute, close_minute = parsed
        return ExtractedDay(
            weekday=weekday,
            open_minute=open_minute,
            close_minute=close_minute,
            text=cleaned
        )

    @staticmethod
    def normalize(source: Union[PartialWeeklyHours, List[RawPeriod]]) -> WeeklySchedule:
        """
        Convert extractor output or a structured period list into a
        complete WeeklySchedule.

        Raises:
            MalformedSchedule: the result would not be a valid 7-day schedule
        """
        try:
            if isinstance(source, PartialWeeklyHours):
                if source.periods:
                    schedule = HoursNormalizer.normalize_periods(source.periods)
                else:
                    schedule = HoursNormalizer.normalize_days(list(source.days.values()))
            else:
                schedule = HoursNormalizer.normalize_periods(list(source))
        except ValidationError as e:
            raise MalformedSchedule(str(e)) from e

        return ScheduleValidator.validate(schedule)

    @staticmethod
    def normalize_days(days: List[ExtractedDay]) -> WeeklySchedule:
        """Text-strategy output: one entry per weekday, first one wins."""
        logger = get_logger()
        by_weekday = {}
        for day in days:
            by_weekday.setdefault(day.weekday, day)

        result: List[Optional[DayHours]] = []
        for weekday in range(7):
            day = by_weekday.get(weekday)

            if day is None or day.closed:
                result.append(None)
                continue

            if day.open_minute is None or day.close_minute is None:
                logger.debug(f"Incomplete hours for weekday {weekday} ({day.text!r}), treating as closed")
                result.append(None)
                continue

            result.append(DayHours(
                open_minute=day.open_minute % MINUTES_PER_DAY,
                close_minute=day.close_minute % MINUTES_PER_DAY
            ))

        return WeeklySchedule(days=result)

    @staticmethod
    def normalize_periods(periods: List[RawPeriod]) -> WeeklySchedule:
        """
        Structured periods, keyed by the weekday they open on.

        A close on the following day is kept as a close_minute at or before
        the open minute. No close, or a close more than a day away, is
        recorded as open around the clock from the open time.

        Several periods opening on one weekday (split hours) are spanned from
        the earliest opening to the close of the latest one, as for text
        ranges such as "9 am–1 pm, 2–5 pm".
        """
        if is_always_open(periods):
            return WeeklySchedule(days=[DayHours(open_minute=0, close_minute=0) for _ in range(7)])

        by_weekday: Dict[int, List[RawPeriod]] = {}
        for period in periods:
            by_weekday.setdefault(period.open_weekday, []).append(period)

        result: List[Optional[DayHours]] = [None] * 7
        for weekday, day_periods in by_weekday.items():
            day_periods.sort(key=lambda p: p.open_minute)
            first, last = day_periods[0], day_periods[-1]
            spanned = RawPeriod(
                open_weekday=weekday,
                open_minute=first.open_minute,
                close_weekday=last.close_weekday,
                close_minute=last.close_minute
            )
            result[weekday] = HoursNormalizer._period_to_day(spanned)

        return WeeklySchedule(days=result)

    @staticmethod
    def _period_to_day(period: RawPeriod) -> DayHours:
        if period.open_all_day:
            return DayHours(open_minute=period.open_minute, close_minute=period.open_minute)

        close_weekday = period.open_weekday if period.close_weekday is None else period.close_weekday
        days_later = (close_weekday - period.open_weekday) % 7

        if days_later == 0:
            return DayHours(open_minute=period.open_minute, close_minute=period.close_minute)

        if days_later == 1 and period.close_minute <= period.open_minute:
            return DayHours(open_minute=period.open_minute, close_minute=period.close_minute)

        # Longer than 24h cannot be expressed per day
        return DayHours(open_minute=period.open_minute, close_minute=period.open_minute)

    @staticmethod
    def format_minute_12h(minute: int) -> str:
        """540 → "9:00AM", 0 → "12:00AM"."""
        hour, mins = divmod(minute % MINUTES_PER_DAY, 60)
        period = 'PM' if hour >= 12 else 'AM'
        hour12 = 12 if hour % 12 == 0 else hour % 12
        return f"{hour12}:{mins:02d}{period}"

    @staticmethod
    def describe_day(day: Optional[DayHours]) -> str:
        """Human-readable hours for one day."""
        if day is None:
            return "Closed"
        if day.open_minute == 0 and day.close_minute == 0:
            return "Open 24 hours"
        return (
            f"{HoursNormalizer.format_minute_12h(day.open_minute)} – "
            f"{HoursNormalizer.format_minute_12h(day.close_minute)}"
        )
