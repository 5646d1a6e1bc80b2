"""
Legacy 24-hour array strategy.
Reads bare hour integers from ["Day",n,[...],[["text",[[open],[close]]]]] fragments.
"""

from typing import List, Tuple

from .base import BaseStrategy
from ..models import ExtractedDay, ExtractionStrategy, PartialWeeklyHours, RawDocument
from ..services import HoursNormalizer
from ..utils.patterns import LEGACY_DAY_PATTERN, clean_fragment, day_index


class Legacy24hStrategy(BaseStrategy):
    """
    Oldest page format. Hours are 24-hour integers with optional minutes,
    e.g. [[9],[17]] or [[12],[22,30]]; a close of 24 means midnight.
    """

    strategy = ExtractionStrategy.LEGACY_24H

    def extract(self, document: RawDocument) -> PartialWeeklyHours:
        matches: List[Tuple[int, ExtractedDay]] = []

        for match in LEGACY_DAY_PATTERN.finditer(document.body):
            day_name, text, open_hour, open_min, close_hour, close_min = match.groups()

            # An unreadable fragment still claims its weekday
            try:
                open_minute = HoursNormalizer.to_minutes(int(open_hour), int(open_min or 0))
                close_minute = HoursNormalizer.to_minutes(int(close_hour), int(close_min or 0))
            except ValueError as e:
                self.logger.debug(f"No usable hours in legacy fragment for {day_name}: {e}")
                open_minute = close_minute = None

            matches.append((match.start(), ExtractedDay(
                weekday=day_index(day_name),
                open_minute=open_minute,
                close_minute=close_minute,
                text=clean_fragment(text)
            )))

        return self._days_result(matches)
