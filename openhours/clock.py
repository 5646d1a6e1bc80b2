"""
Time source for availability checks.
Resolves "now" in the target civil timezone as weekday + minute-of-day.
"""

from datetime import datetime, date
from typing import Callable, Optional

import pytz

from .models import Instant
from .utils import get_logger


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


class TimeSource:
    """
    Converts the system clock into civil fields of one timezone.

    Weekday and minute-of-day always come from the converted calendar fields,
    never from a fixed UTC offset, so clock changes (BST/GMT) are handled.
    """

    def __init__(self, timezone: str = "Europe/London", clock: Optional[Callable[[], datetime]] = None):
        self.timezone_name = timezone
        self.clock = clock or utc_now
        self.logger = get_logger()
        self.fallback_to_utc = False

        try:
            self.tz = pytz.timezone(timezone)
        except pytz.UnknownTimeZoneError:
            self.logger.warning(
                f"Unknown timezone '{timezone}', falling back to UTC. "
                f"Open/closed answers will be wrong outside UTC."
            )
            self.tz = pytz.utc
            self.fallback_to_utc = True

    def local_now(self) -> datetime:
        """Current time as an aware datetime in the target timezone."""
        return self.to_local(self.clock())

    def to_local(self, moment: datetime) -> datetime:
        """Convert a moment to the target timezone; naive values are taken as UTC."""
        if moment.tzinfo is None:
            moment = pytz.utc.localize(moment)
        return moment.astimezone(self.tz)

    def localize(self, civil: datetime) -> datetime:
        """Attach the target timezone to a naive civil (wall clock) datetime."""
        if civil.tzinfo is not None:
            return civil.astimezone(self.tz)
        return self.tz.localize(civil)

    def now(self) -> Instant:
        return self.instant_at(self.local_now())

    def today(self) -> date:
        return self.local_now().date()

    @staticmethod
    def instant_at(local: datetime) -> Instant:
        """Instant for a datetime already expressed in civil time."""
        # Python weekday(): Monday=0; ours: Sunday=0
        return Instant(
            weekday=(local.weekday() + 1) % 7,
            minute_of_day=local.hour * 60 + local.minute
        )
