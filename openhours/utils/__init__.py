"""
Utility modules for the hours engine.
"""

from .logger import HoursLogger, get_logger, init_logger
from .patterns import *
from .validators import ScheduleValidator

__all__ = [
    'HoursLogger',
    'get_logger',
    'init_logger',
    'ScheduleValidator',
]
