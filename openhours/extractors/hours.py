"""
Opening hours extractor.
Runs the extraction strategies in priority order and keeps the first confident one.
"""

from typing import List, Optional

from .base import BaseStrategy
from .structured import StructuredPeriodsStrategy
from .ampm import AmPmTextStrategy
from .legacy import Legacy24hStrategy
from ..errors import InsufficientData
from ..models import PartialWeeklyHours, RawDocument
from ..utils import get_logger


def default_strategies() -> List[BaseStrategy]:
    """Structured periods first, then AM/PM text, then legacy arrays."""
    return [
        StructuredPeriodsStrategy(),
        AmPmTextStrategy(),
        Legacy24hStrategy(),
    ]


class HoursExtractor:
    """
    Extract weekly hours from a place page.

    A strategy is accepted once it covers at least `min_days` distinct
    weekdays; fewer than that is treated as noise rather than a schedule.
    """

    def __init__(self, min_days: int = 3, strategies: Optional[List[BaseStrategy]] = None):
        self.min_days = min_days
        self.strategies = strategies if strategies is not None else default_strategies()
        self.logger = get_logger()

    def extract(self, document: RawDocument) -> PartialWeeklyHours:
        """
        Raises:
            InsufficientData: no strategy reached `min_days`
        """
        best_days = 0

        for strategy in self.strategies:
            result = strategy.extract(document)
            covered = result.weekdays_covered

            if covered >= self.min_days:
                self.logger.info(
                    f"Extracted hours for {document.place_link} with {strategy.name} "
                    f"({covered} day(s), {result.matches_found} match(es))"
                )
                return result

            if result.matches_found:
                self.logger.debug(
                    f"{strategy.name} found only {covered} day(s) for {document.place_link}"
                )
            best_days = max(best_days, covered)

        raise InsufficientData(document.place_link, best_days=best_days, min_days=self.min_days)
