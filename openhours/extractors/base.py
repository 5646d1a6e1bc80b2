"""
Base extraction strategy.
All strategies inherit from this to ensure consistent interface.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Tuple

from ..models import ExtractedDay, ExtractionStrategy, PartialWeeklyHours, RawDocument, RawPeriod
from ..utils import get_logger


class BaseStrategy(ABC):
    """
    Abstract base class for hours extraction strategies.

    Place pages embed the same schedule several times, and later copies have
    been seen carrying a neighbouring day's hours. Text strategies therefore
    keep only the first match for each weekday, in document order. Period
    objects carry their weekday explicitly, so only repeated periods are
    dropped there.
    """

    strategy: ExtractionStrategy

    def __init__(self):
        self.logger = get_logger()

    @property
    def name(self) -> str:
        return self.strategy.value

    @abstractmethod
    def extract(self, document: RawDocument) -> PartialWeeklyHours:
        """
        Scan a raw document.

        Args:
            document: Fetched place page

        Returns:
            PartialWeeklyHours, possibly empty
        """
        pass

    def _days_result(self, matches: Iterable[Tuple[int, ExtractedDay]]) -> PartialWeeklyHours:
        """
        Build a result from (position, day) matches, first match per weekday wins.
        """
        result = PartialWeeklyHours(strategy=self.strategy)

        for _, day in sorted(matches, key=lambda item: item[0]):
            result.matches_found += 1
            if day.weekday in result.days:
                result.duplicates_discarded += 1
                continue
            result.days[day.weekday] = day

        self._log_duplicates(result)
        return result

    def _periods_result(self, matches: Iterable[Tuple[int, RawPeriod]]) -> PartialWeeklyHours:
        """
        Build a result from (position, period) matches. A period opening on
        the same weekday and minute as an earlier one is a repeated copy and
        is discarded; other periods on that weekday are split hours and kept.
        """
        result = PartialWeeklyHours(strategy=self.strategy)
        seen = set()
        periods: List[RawPeriod] = []

        for _, period in sorted(matches, key=lambda item: item[0]):
            result.matches_found += 1
            key = (period.open_weekday, period.open_minute)
            if key in seen:
                result.duplicates_discarded += 1
                continue
            seen.add(key)
            periods.append(period)

        result.periods = periods
        self._log_duplicates(result)
        return result

    def _log_duplicates(self, result: PartialWeeklyHours):
        if result.duplicates_discarded:
            self.logger.debug(
                f"{self.name}: discarded {result.duplicates_discarded} duplicate weekday "
                f"fragment(s) of {result.matches_found}"
            )
