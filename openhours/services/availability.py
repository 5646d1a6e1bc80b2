"""
Availability evaluation.
Answers "is it open" and "how long until it closes" for a weekly schedule.
"""

from typing import List, Optional

from ..models import (
    DAY_NAMES,
    MINUTES_PER_DAY,
    Instant,
    LocationStatus,
    NextOpening,
    RouteSummary,
    Severity,
    StatusState,
    WeeklySchedule,
)
from .normalizer_hours import HoursNormalizer


class AvailabilityEvaluator:
    """
    Evaluates schedules at an instant.

    A day whose close is at or before its open runs past midnight, so every
    check looks at both today's hours and yesterday's hours.
    """

    def __init__(self, closing_soon_minutes: int = 60, opening_soon_minutes: int = 120):
        self.closing_soon_minutes = closing_soon_minutes
        self.opening_soon_minutes = opening_soon_minutes

    @staticmethod
    def minutes_until_close(schedule: WeeklySchedule, instant: Instant) -> Optional[int]:
        """
        Minutes left before the venue closes, or None if it is closed.

        Open under yesterday's hours (past midnight): close - now.
        Open under today's same-day hours: close - now.
        Open under today's hours that run past midnight: (1440 - now) + close.
        When two windows overlap the later close wins.
        """
        now = instant.minute_of_day
        candidates = []

        yesterday = schedule.day((instant.weekday - 1) % 7)
        if yesterday is not None and yesterday.crosses_midnight and now < yesterday.close_minute:
            candidates.append(yesterday.close_minute - now)

        today = schedule.day(instant.weekday)
        if today is not None:
            if today.crosses_midnight:
                if now >= today.open_minute:
                    candidates.append((MINUTES_PER_DAY - now) + today.close_minute)
            elif today.open_minute <= now < today.close_minute:
                candidates.append(today.close_minute - now)

        return max(candidates) if candidates else None

    @staticmethod
    def is_open(schedule: WeeklySchedule, instant: Instant) -> bool:
        return AvailabilityEvaluator.minutes_until_close(schedule, instant) is not None

    @staticmethod
    def next_opening(schedule: WeeklySchedule, instant: Instant) -> Optional[NextOpening]:
        """
        Next opening time within the coming week, or None if the venue
        never opens. Only meaningful while the venue is closed.
        """
        now = instant.minute_of_day

        for days_ahead in range(0, 8):
            weekday = (instant.weekday + days_ahead) % 7
            day = schedule.day(weekday)
            if day is None:
                continue

            if days_ahead == 0:
                if now >= day.open_minute:
                    continue
                minutes_until_open = day.open_minute - now
                label = "today"
            else:
                minutes_until_open = (
                    (MINUTES_PER_DAY - now)
                    + (days_ahead - 1) * MINUTES_PER_DAY
                    + day.open_minute
                )
                label = "tomorrow" if days_ahead == 1 else DAY_NAMES[weekday]

            return NextOpening(
                weekday=weekday,
                minute_of_day=day.open_minute,
                minutes_until_open=minutes_until_open,
                label=label
            )

        return None

    def classify(
        self,
        schedule: Optional[WeeklySchedule],
        instant: Instant,
        is_bank_holiday: bool = False,
        stale: bool = False
    ) -> LocationStatus:
        """
        Status for one location. No schedule means UNKNOWN, which callers
        should treat as a reason to warn.
        """
        if schedule is None:
            return LocationStatus(
                state=StatusState.UNKNOWN,
                message="Opening hours for this location are unknown",
                is_bank_holiday=is_bank_holiday,
                stale=stale
            )

        remaining = self.minutes_until_close(schedule, instant)

        if remaining is not None:
            if remaining <= self.closing_soon_minutes:
                return LocationStatus(
                    state=StatusState.CLOSING_SOON,
                    message=f"This location closes in {remaining} minutes",
                    minutes_until_close=remaining,
                    is_bank_holiday=is_bank_holiday,
                    stale=stale
                )
            return LocationStatus(
                state=StatusState.OPEN,
                message="This location is currently open",
                minutes_until_close=remaining,
                is_bank_holiday=is_bank_holiday,
                stale=stale
            )

        closed_today = schedule.day(instant.weekday) is None
        upcoming = self.next_opening(schedule, instant)

        if upcoming is None:
            message = "This location is currently closed"
            opening_soon = False
        else:
            opens_at = HoursNormalizer.format_minute_12h(upcoming.minute_of_day)
            message = f"This location is currently closed. Opens {upcoming.label} at {opens_at}"
            opening_soon = upcoming.minutes_until_open <= self.opening_soon_minutes

        return LocationStatus(
            state=StatusState.CLOSED,
            message=message,
            next_opening=upcoming,
            closed_today=closed_today,
            opening_soon=opening_soon,
            is_bank_holiday=is_bank_holiday,
            stale=stale
        )

    @staticmethod
    def summarize(statuses: List[LocationStatus], is_bank_holiday: bool = False) -> RouteSummary:
        """Roll a route's statuses up into one warning."""
        closed = sum(1 for s in statuses if s.state == StatusState.CLOSED)
        closing_soon = sum(1 for s in statuses if s.state == StatusState.CLOSING_SOON)
        opening_soon = sum(1 for s in statuses if s.state == StatusState.CLOSED and s.opening_soon)
        unknown = sum(1 for s in statuses if s.state == StatusState.UNKNOWN)

        summary = RouteSummary(
            closed_count=closed,
            closing_soon_count=closing_soon,
            opening_soon_count=opening_soon,
            unknown_count=unknown,
            is_bank_holiday=is_bank_holiday,
            statuses=statuses
        )

        affected = closed + closing_soon
        if is_bank_holiday and affected:
            summary.message = (
                f"Bank holiday + {affected} location{'s' if affected > 1 else ''} may be affected"
            )
            summary.severity = Severity.HIGH
        elif closed and closing_soon:
            summary.message = (
                f"{closed} location{'s' if closed > 1 else ''} currently closed "
                f"and {closing_soon} closing soon"
            )
            summary.severity = Severity.HIGH
        elif closed:
            summary.message = f"{closed} location{'s are' if closed > 1 else ' is'} currently closed"
            summary.severity = Severity.HIGH
        elif closing_soon:
            summary.message = f"{closing_soon} location{'s are' if closing_soon > 1 else ' is'} closing soon"
            summary.severity = Severity.MEDIUM
        elif unknown:
            summary.message = (
                f"Opening hours unknown for {unknown} location{'s' if unknown > 1 else ''}"
            )
            summary.severity = Severity.MEDIUM
        elif is_bank_holiday:
            summary.message = "It's a bank holiday - opening times may vary"
            summary.severity = Severity.MEDIUM
        else:
            return summary

        summary.should_warn = True
        return summary
