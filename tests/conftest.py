"""
Shared fixtures for the hours engine tests.
"""

import sys
import os
import asyncio
from datetime import datetime, timedelta

import pytest
import pytz

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from openhours.models import (
    DAY_KEYS,
    ExtractionStrategy,
    FreshSchedule,
    HoursConfig,
    WeeklySchedule,
)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakePipeline:
    """Stands in for fetch -> extract -> normalize; counts network runs."""

    def __init__(self, schedule: WeeklySchedule = None, error: Exception = None):
        self.schedule = schedule
        self.error = error
        self.calls = 0

    async def run(self, place):
        self.calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return FreshSchedule(
            schedule=self.schedule,
            source=ExtractionStrategy.AMPM_TEXT,
            canonical_url="https://www.google.com/maps/place/Test"
        )


def build_schedule(**days) -> WeeklySchedule:
    """build_schedule(monday=("09:00", "17:00")); unnamed days are closed."""
    data = {key: None for key in DAY_KEYS}
    for key, hours in days.items():
        data[key] = {'open': hours[0], 'close': hours[1]}
    return WeeklySchedule.model_validate(data)


@pytest.fixture
def make_schedule():
    return build_schedule


@pytest.fixture
def weekday_schedule():
    """Mon-Sat 09:00-17:00, Sunday closed."""
    hours = ("09:00", "17:00")
    return build_schedule(
        monday=hours, tuesday=hours, wednesday=hours,
        thursday=hours, friday=hours, saturday=hours
    )


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 1, 5, 12, 0, tzinfo=pytz.utc))


@pytest.fixture
def fake_pipeline(weekday_schedule):
    return FakePipeline(schedule=weekday_schedule)


@pytest.fixture
def config(tmp_path):
    return HoursConfig(
        cache_file=str(tmp_path / "opening-hours-cache.json"),
        retry_backoff_sec=0,
        delay_between_requests_sec=0,
        admin_key="letmein"
    )
