"""
Service modules for schedule normalization and evaluation.
"""

from .normalizer_hours import HoursNormalizer
from .availability import AvailabilityEvaluator
from .bank_holidays import BankHolidayCalendar

__all__ = [
    'HoursNormalizer',
    'AvailabilityEvaluator',
    'BankHolidayCalendar',
]
