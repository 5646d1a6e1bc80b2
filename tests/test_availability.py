"""
Tests for open/closed evaluation, including hours that run past midnight.
"""

from openhours.models import Instant, LocationStatus, Severity, StatusState
from openhours.services import AvailabilityEvaluator


SUNDAY, MONDAY, TUESDAY, FRIDAY, SATURDAY = 0, 1, 2, 5, 6


def at(weekday: int, hhmm: str) -> Instant:
    hour, minute = hhmm.split(':')
    return Instant(weekday=weekday, minute_of_day=int(hour) * 60 + int(minute))


class TestIsOpen:
    """Tests for same-day and midnight-crossing hours."""

    def test_closed_after_closing_time(self, make_schedule):
        """A venue closing at 19:00 reads closed at 20:09."""
        schedule = make_schedule(sunday=("09:00", "19:00"))

        assert AvailabilityEvaluator.is_open(schedule, at(SUNDAY, "20:09")) is False
        assert AvailabilityEvaluator.minutes_until_close(schedule, at(SUNDAY, "20:09")) is None

    def test_same_day_bounds(self, make_schedule):
        schedule = make_schedule(sunday=("09:00", "19:00"))

        assert AvailabilityEvaluator.is_open(schedule, at(SUNDAY, "08:59")) is False
        assert AvailabilityEvaluator.is_open(schedule, at(SUNDAY, "09:00")) is True
        assert AvailabilityEvaluator.is_open(schedule, at(SUNDAY, "18:59")) is True
        assert AvailabilityEvaluator.is_open(schedule, at(SUNDAY, "19:00")) is False

    def test_closed_day(self, make_schedule):
        schedule = make_schedule(monday=("09:00", "17:00"))
        assert AvailabilityEvaluator.is_open(schedule, at(SUNDAY, "12:00")) is False

    def test_open_until_midnight(self, make_schedule):
        """ "9 am–12 am" is open at 23:59 and closed at 00:00."""
        schedule = make_schedule(monday=("09:00", "00:00"))

        assert AvailabilityEvaluator.is_open(schedule, at(MONDAY, "23:59")) is True
        assert AvailabilityEvaluator.minutes_until_close(schedule, at(MONDAY, "23:59")) == 1
        assert AvailabilityEvaluator.is_open(schedule, at(TUESDAY, "00:00")) is False

    def test_open_24_hours(self, make_schedule):
        hours = ("00:00", "00:00")
        schedule = make_schedule(
            sunday=hours, monday=hours, tuesday=hours, wednesday=hours,
            thursday=hours, friday=hours, saturday=hours
        )
        assert AvailabilityEvaluator.is_open(schedule, at(MONDAY, "03:00")) is True
        assert AvailabilityEvaluator.is_open(schedule, at(SATURDAY, "23:59")) is True


class TestMinutesUntilClose:
    """Tests for time remaining before close."""

    def test_same_day(self, make_schedule):
        schedule = make_schedule(sunday=("09:00", "19:00"))
        assert AvailabilityEvaluator.minutes_until_close(schedule, at(SUNDAY, "12:00")) == 420

    def test_before_midnight(self, make_schedule):
        """21:00-02:00 evaluated at 23:30 closes in 2.5 hours."""
        schedule = make_schedule(friday=("21:00", "02:00"))
        assert AvailabilityEvaluator.minutes_until_close(schedule, at(FRIDAY, "23:30")) == 150

    def test_after_midnight_uses_yesterday(self, make_schedule):
        """At 01:00 the next day the venue is open under the previous day's hours."""
        schedule = make_schedule(friday=("21:00", "02:00"))

        assert AvailabilityEvaluator.minutes_until_close(schedule, at(SATURDAY, "01:00")) == 60
        assert AvailabilityEvaluator.is_open(schedule, at(SATURDAY, "02:00")) is False

    def test_not_yet_open(self, make_schedule):
        schedule = make_schedule(friday=("21:00", "02:00"))
        assert AvailabilityEvaluator.minutes_until_close(schedule, at(FRIDAY, "20:59")) is None

    def test_overlap_takes_later_close(self, make_schedule):
        """Open late Friday, and Saturday opens at midnight: Saturday's hours win."""
        schedule = make_schedule(friday=("18:00", "02:00"), saturday=("00:00", "04:00"))
        assert AvailabilityEvaluator.minutes_until_close(schedule, at(SATURDAY, "01:00")) == 180


class TestNextOpening:
    """Tests for the next opening lookup."""

    def test_later_today(self, make_schedule):
        schedule = make_schedule(monday=("09:00", "17:00"))
        upcoming = AvailabilityEvaluator.next_opening(schedule, at(MONDAY, "08:00"))

        assert upcoming.label == "today"
        assert upcoming.minutes_until_open == 60

    def test_tomorrow(self, make_schedule):
        schedule = make_schedule(monday=("09:00", "17:00"))
        upcoming = AvailabilityEvaluator.next_opening(schedule, at(SUNDAY, "20:00"))

        assert upcoming.label == "tomorrow"
        assert upcoming.weekday == MONDAY
        assert upcoming.minutes_until_open == 780

    def test_next_week(self, make_schedule):
        schedule = make_schedule(monday=("09:00", "17:00"))
        upcoming = AvailabilityEvaluator.next_opening(schedule, at(MONDAY, "18:00"))

        assert upcoming.label == "Monday"
        assert upcoming.minutes_until_open == 360 + 6 * 1440 + 540

    def test_never_opens(self, make_schedule):
        assert AvailabilityEvaluator.next_opening(make_schedule(), at(MONDAY, "12:00")) is None


class TestClassify:
    """Tests for location status classification."""

    def test_open(self, make_schedule):
        evaluator = AvailabilityEvaluator()
        status = evaluator.classify(make_schedule(sunday=("09:00", "19:00")), at(SUNDAY, "12:00"))

        assert status.state == StatusState.OPEN
        assert status.minutes_until_close == 420

    def test_closing_soon(self, make_schedule):
        evaluator = AvailabilityEvaluator(closing_soon_minutes=60)
        schedule = make_schedule(sunday=("09:00", "19:00"))

        status = evaluator.classify(schedule, at(SUNDAY, "18:30"))
        assert status.state == StatusState.CLOSING_SOON
        assert status.message == "This location closes in 30 minutes"

        status = evaluator.classify(schedule, at(SUNDAY, "18:00"))
        assert status.state == StatusState.CLOSING_SOON

    def test_closed_with_next_opening(self, make_schedule):
        evaluator = AvailabilityEvaluator()
        schedule = make_schedule(sunday=("09:00", "19:00"), monday=("09:00", "17:00"))

        status = evaluator.classify(schedule, at(SUNDAY, "20:09"))

        assert status.state == StatusState.CLOSED
        assert status.message == "This location is currently closed. Opens tomorrow at 9:00AM"
        assert status.closed_today is False
        assert status.opening_soon is False

    def test_opening_soon(self, make_schedule):
        evaluator = AvailabilityEvaluator(opening_soon_minutes=120)
        status = evaluator.classify(make_schedule(monday=("09:00", "17:00")), at(MONDAY, "07:30"))

        assert status.state == StatusState.CLOSED
        assert status.opening_soon is True
        assert status.closed_today is False

    def test_closed_today(self, make_schedule):
        evaluator = AvailabilityEvaluator()
        status = evaluator.classify(make_schedule(monday=("09:00", "17:00")), at(SUNDAY, "12:00"))
        assert status.closed_today is True

    def test_unknown(self):
        status = AvailabilityEvaluator().classify(None, at(SUNDAY, "12:00"))
        assert status.state == StatusState.UNKNOWN


class TestSummarize:
    """Tests for route-level warnings."""

    def status(self, state: StatusState, **kwargs) -> LocationStatus:
        return LocationStatus(state=state, message="", **kwargs)

    def test_all_open(self):
        summary = AvailabilityEvaluator.summarize([self.status(StatusState.OPEN)])

        assert summary.should_warn is False
        assert summary.severity == Severity.LOW

    def test_closed(self):
        summary = AvailabilityEvaluator.summarize([
            self.status(StatusState.CLOSED),
            self.status(StatusState.OPEN),
        ])

        assert summary.should_warn is True
        assert summary.severity == Severity.HIGH
        assert summary.closed_count == 1
        assert summary.message == "1 location is currently closed"

    def test_closed_and_closing_soon(self):
        summary = AvailabilityEvaluator.summarize([
            self.status(StatusState.CLOSED),
            self.status(StatusState.CLOSED),
            self.status(StatusState.CLOSING_SOON),
        ])
        assert summary.message == "2 locations currently closed and 1 closing soon"
        assert summary.severity == Severity.HIGH

    def test_closing_soon(self):
        summary = AvailabilityEvaluator.summarize([self.status(StatusState.CLOSING_SOON)])

        assert summary.should_warn is True
        assert summary.severity == Severity.MEDIUM
        assert summary.message == "1 location is closing soon"

    def test_unknown_warns(self):
        summary = AvailabilityEvaluator.summarize([
            self.status(StatusState.UNKNOWN),
            self.status(StatusState.OPEN),
        ])

        assert summary.should_warn is True
        assert summary.unknown_count == 1

    def test_bank_holiday(self):
        summary = AvailabilityEvaluator.summarize([self.status(StatusState.CLOSED)], is_bank_holiday=True)
        assert summary.message == "Bank holiday + 1 location may be affected"

        summary = AvailabilityEvaluator.summarize([self.status(StatusState.OPEN)], is_bank_holiday=True)
        assert summary.should_warn is True
        assert summary.severity == Severity.MEDIUM
