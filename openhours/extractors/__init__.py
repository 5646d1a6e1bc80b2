"""
Hours extraction strategies.
Each strategy handles one historical page format.
"""

from .base import BaseStrategy
from .structured import StructuredPeriodsStrategy
from .ampm import AmPmTextStrategy
from .legacy import Legacy24hStrategy
from .hours import HoursExtractor, default_strategies

__all__ = [
    'BaseStrategy',
    'StructuredPeriodsStrategy',
    'AmPmTextStrategy',
    'Legacy24hStrategy',
    'HoursExtractor',
    'default_strategies',
]
