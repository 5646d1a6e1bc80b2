"""
Bank holiday calendar.
Published opening hours often don't apply on bank holidays, so statuses flag them.
"""

from datetime import date, datetime
from functools import lru_cache
from typing import Dict, Optional, Union

import holidays


@lru_cache(maxsize=8)
def _calendar(country: str, subdivision: Optional[str], year: int) -> holidays.HolidayBase:
    return holidays.country_holidays(country, subdiv=subdivision, years=year)


class BankHolidayCalendar:
    """Public holidays for one country/subdivision (default England)."""

    def __init__(self, country: str = "GB", subdivision: Optional[str] = "ENG"):
        self.country = country
        self.subdivision = subdivision

    def bank_holidays(self, year: int) -> Dict[date, str]:
        """All bank holidays in a year, in date order."""
        calendar = _calendar(self.country, self.subdivision, year)
        return dict(sorted(calendar.items()))

    def holiday_name(self, day: Union[date, datetime]) -> Optional[str]:
        if isinstance(day, datetime):
            day = day.date()
        return _calendar(self.country, self.subdivision, day.year).get(day)

    def is_bank_holiday(self, day: Union[date, datetime]) -> bool:
        return self.holiday_name(day) is not None
