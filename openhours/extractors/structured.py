"""
Structured-period strategy.
Reads embedded open/close period objects keyed by numeric weekday.
"""

from typing import List, Optional, Tuple

from .base import BaseStrategy
from ..models import ExtractionStrategy, PartialWeeklyHours, RawDocument, RawPeriod, hhmm_to_minute
from ..services import HoursNormalizer
from ..utils.patterns import PERIOD_HOUR_MINUTE_PATTERN, PERIOD_TIME_PATTERN


class StructuredPeriodsStrategy(BaseStrategy):
    """
    Period lists in either shape:
      {"open":{"day":1,"time":"0900"},"close":{"day":2,"time":"0100"}}
      {"open":{"day":1,"hour":9,"minute":0},"close":{"day":1,"hour":17,"minute":0}}
    Days are Sunday=0. A missing close means open 24 hours.
    """

    strategy = ExtractionStrategy.STRUCTURED_PERIODS

    def extract(self, document: RawDocument) -> PartialWeeklyHours:
        matches: List[Tuple[int, RawPeriod]] = []

        for match in PERIOD_TIME_PATTERN.finditer(document.body):
            period = self._time_period(*match.groups())
            if period:
                matches.append((match.start(), period))

        for match in PERIOD_HOUR_MINUTE_PATTERN.finditer(document.body):
            period = self._hour_minute_period(*match.groups())
            if period:
                matches.append((match.start(), period))

        return self._periods_result(matches)

    def _time_period(
        self,
        open_day: str,
        open_time: str,
        close_day: Optional[str],
        close_time: Optional[str]
    ) -> Optional[RawPeriod]:
        try:
            return RawPeriod(
                open_weekday=int(open_day),
                open_minute=hhmm_to_minute(open_time),
                close_weekday=int(close_day) if close_day is not None else None,
                close_minute=hhmm_to_minute(close_time) if close_time else None
            )
        except ValueError as e:
            self.logger.debug(f"Skipping unreadable period: {e}")
            return None

    def _hour_minute_period(
        self,
        open_day: str,
        open_hour: str,
        open_min: str,
        close_day: Optional[str],
        close_hour: Optional[str],
        close_min: Optional[str]
    ) -> Optional[RawPeriod]:
        try:
            close_minute = None
            if close_hour is not None:
                close_minute = HoursNormalizer.to_minutes(int(close_hour), int(close_min or 0))

            return RawPeriod(
                open_weekday=int(open_day),
                open_minute=HoursNormalizer.to_minutes(int(open_hour), int(open_min)),
                close_weekday=int(close_day) if close_day is not None else None,
                close_minute=close_minute
            )
        except ValueError as e:
            self.logger.debug(f"Skipping unreadable period: {e}")
            return None
