"""
AM/PM text strategy.
Reads per-day hours text such as "Friday",["9 am–12 am"].
"""

from typing import List, Tuple

from .base import BaseStrategy
from ..models import ExtractedDay, ExtractionStrategy, PartialWeeklyHours, RawDocument
from ..services import HoursNormalizer
from ..utils.patterns import AMPM_DAY_PATTERN, NESTED_DAY_PATTERN, clean_fragment, day_index


class AmPmTextStrategy(BaseStrategy):
    """
    12-hour text ranges, in the flat `"Day",["text"` shape and the nested
    `["Day",n,[date],[["text",...` shape. Text without a usable AM/PM range
    ("9–17") is left for the legacy strategy.

    A fragment with unusable text still claims its weekday, so a later copy
    of that weekday cannot fill it in. Such a day is kept with no hours and
    does not count towards coverage.
    """

    strategy = ExtractionStrategy.AMPM_TEXT

    def extract(self, document: RawDocument) -> PartialWeeklyHours:
        matches: List[Tuple[int, ExtractedDay]] = []

        for pattern in (AMPM_DAY_PATTERN, NESTED_DAY_PATTERN):
            for match in pattern.finditer(document.body):
                day_name, text = match.groups()
                weekday = day_index(day_name)

                day = HoursNormalizer.parse_day_text(weekday, text)
                if day is None:
                    self.logger.debug(f"{self.name}: no usable hours in {day_name} fragment {text!r}")
                    day = ExtractedDay(weekday=weekday, text=clean_fragment(text))
                matches.append((match.start(), day))

        return self._days_result(matches)
