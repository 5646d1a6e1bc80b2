"""
Data models for the opening-hours engine.
All models use Pydantic for validation and serialization.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    field_validator,
    model_serializer,
    model_validator,
)


# Sunday=0 .. Saturday=6
DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']
DAY_KEYS = [name.lower() for name in DAY_NAMES]

MINUTES_PER_DAY = 24 * 60


def minute_to_hhmm(minute: int) -> str:
    """Format a minute-of-day as zero-padded 24-hour HH:MM."""
    return f"{minute // 60:02d}:{minute % 60:02d}"


def hhmm_to_minute(value: str) -> int:
    """
    Parse a 24-hour "HH:MM" (or "HHMM") string to minute-of-day.
    "24:00" maps to 0, the midnight that ends the day.
    """
    text = value.strip()
    if ':' in text:
        hour_str, minute_str = text.split(':', 1)
    elif len(text) == 4 and text.isdigit():
        hour_str, minute_str = text[:2], text[2:]
    else:
        raise ValueError(f"Invalid time: {value!r}")

    hour, minute = int(hour_str), int(minute_str)
    if not (0 <= hour <= 24 and 0 <= minute <= 59) or (hour == 24 and minute != 0):
        raise ValueError(f"Invalid time: {value!r}")

    return (hour * 60 + minute) % MINUTES_PER_DAY


class ExtractionStrategy(str, Enum):
    """Where a schedule came from."""
    STRUCTURED_PERIODS = "structured_periods"
    AMPM_TEXT = "ampm_text"
    LEGACY_24H = "legacy_24h"
    MANUAL_OVERRIDE = "manual_override"


class StatusState(str, Enum):
    """Open/closed classification for a location at an instant."""
    OPEN = "open"
    CLOSING_SOON = "closing_soon"
    CLOSED = "closed"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """How loudly a caller should warn players."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PlaceReference(BaseModel):
    """A shareable map link plus the name players know the venue by."""
    model_config = ConfigDict(frozen=True)

    place_link: str
    display_name: str

    @field_validator('place_link')
    @classmethod
    def _strip_link(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("place_link must not be empty")
        return v


class RawPeriod(BaseModel):
    """One open/close interval as reported by a structured source."""
    open_weekday: int = Field(ge=0, le=6)
    open_minute: int = Field(ge=0, le=MINUTES_PER_DAY - 1)
    close_weekday: Optional[int] = Field(default=None, ge=0, le=6)
    close_minute: Optional[int] = Field(default=None, ge=0, le=MINUTES_PER_DAY - 1)

    @property
    def open_all_day(self) -> bool:
        """No close means open 24h from the open time."""
        return self.close_minute is None


class DayHours(BaseModel):
    """
    Open/close pair for one weekday, in minute-of-day form.

    close_minute <= open_minute means the venue closes after midnight,
    e.g. open=540 close=60 is 09:00 until 01:00 the following day.
    """
    open_minute: int = Field(ge=0, le=MINUTES_PER_DAY - 1)
    close_minute: int = Field(ge=0, le=MINUTES_PER_DAY - 1)

    @model_validator(mode='before')
    @classmethod
    def _from_hhmm(cls, data: Any) -> Any:
        # Cache file form: {"open": "09:00", "close": "17:00"}
        if isinstance(data, dict) and 'open' in data and 'open_minute' not in data:
            return {
                'open_minute': hhmm_to_minute(str(data['open'])),
                'close_minute': hhmm_to_minute(str(data['close'])),
            }
        return data

    @model_serializer
    def _to_hhmm(self) -> Dict[str, str]:
        return {
            'open': minute_to_hhmm(self.open_minute),
            'close': minute_to_hhmm(self.close_minute),
        }

    @property
    def crosses_midnight(self) -> bool:
        return self.close_minute <= self.open_minute

    def __str__(self) -> str:
        return f"{minute_to_hhmm(self.open_minute)}–{minute_to_hhmm(self.close_minute)}"


class WeeklySchedule(BaseModel):
    """
    Canonical 7-day schedule. Index is the weekday (Sunday=0).
    A None entry means closed all day; there are always exactly 7 entries.
    """
    days: List[Optional[DayHours]]

    @model_validator(mode='before')
    @classmethod
    def _from_day_names(cls, data: Any) -> Any:
        if isinstance(data, dict) and 'days' not in data:
            missing = [key for key in DAY_KEYS if key not in data]
            if missing:
                raise ValueError(f"Schedule is missing days: {', '.join(missing)}")
            return {'days': [data[key] for key in DAY_KEYS]}
        return data

    @field_validator('days')
    @classmethod
    def _seven_days(cls, v: List[Optional[DayHours]]) -> List[Optional[DayHours]]:
        if len(v) != 7:
            raise ValueError(f"Schedule must have 7 days, got {len(v)}")
        return v

    @model_serializer
    def _to_day_names(self) -> Dict[str, Optional[Dict[str, str]]]:
        return {
            key: (day.model_dump() if day is not None else None)
            for key, day in zip(DAY_KEYS, self.days)
        }

    @classmethod
    def all_closed(cls) -> 'WeeklySchedule':
        return cls(days=[None] * 7)

    def day(self, weekday: int) -> Optional[DayHours]:
        return self.days[weekday % 7]

    def with_day(self, weekday: int, hours: Optional[DayHours]) -> 'WeeklySchedule':
        """Return a copy with one weekday replaced."""
        days = list(self.days)
        days[weekday % 7] = hours
        return WeeklySchedule(days=days)

    def open_days(self) -> int:
        return sum(1 for day in self.days if day is not None)


def is_always_open(periods: List[RawPeriod]) -> bool:
    """A lone period opening Sunday 00:00 with no close means open 24/7."""
    return (
        len(periods) == 1
        and periods[0].open_weekday == 0
        and periods[0].open_minute == 0
        and periods[0].close_minute is None
    )


class ExtractedDay(BaseModel):
    """One weekday as found by a text-scanning strategy."""
    weekday: int = Field(ge=0, le=6)
    closed: bool = False
    open_minute: Optional[int] = None
    close_minute: Optional[int] = None
    text: Optional[str] = None  # raw fragment, kept for debugging

    @property
    def usable(self) -> bool:
        """Closed, or a complete open/close pair."""
        return self.closed or (self.open_minute is not None and self.close_minute is not None)


class PartialWeeklyHours(BaseModel):
    """
    Uniform output of every extraction strategy.
    Text strategies fill `days`; the structured strategy fills `periods`.
    """
    strategy: ExtractionStrategy
    days: Dict[int, ExtractedDay] = Field(default_factory=dict)
    periods: List[RawPeriod] = Field(default_factory=list)
    matches_found: int = 0
    duplicates_discarded: int = 0

    @property
    def weekdays_covered(self) -> int:
        if is_always_open(self.periods):
            return 7
        covered = {weekday for weekday, day in self.days.items() if day.usable}
        covered.update(p.open_weekday for p in self.periods)
        return len(covered)


class RawDocument(BaseModel):
    """Fetched place page."""
    place_link: str
    canonical_url: str
    body: str
    status_code: int = 200
    fetched_at: Optional[datetime] = None


class Instant(BaseModel):
    """Weekday and minute-of-day in the target civil timezone."""
    weekday: int = Field(ge=0, le=6)
    minute_of_day: int = Field(ge=0, le=MINUTES_PER_DAY - 1)

    def __str__(self) -> str:
        return f"{DAY_NAMES[self.weekday]} {minute_to_hhmm(self.minute_of_day)}"


class CacheEntry(BaseModel):
    """Persisted hours for one place_link (the key lives in the file mapping)."""
    display_name: str
    schedule: WeeklySchedule
    last_refreshed: datetime
    source: Optional[ExtractionStrategy] = None
    canonical_url: Optional[str] = None

    # Manual override audit
    overridden_at: Optional[datetime] = None
    override_note: Optional[str] = None


class HoursCacheFile(RootModel[Dict[str, CacheEntry]]):
    """Whole cache file: place_link -> entry."""
    root: Dict[str, CacheEntry] = Field(default_factory=dict)


class FreshSchedule(BaseModel):
    """Output of one fetch -> extract -> normalize run."""
    schedule: WeeklySchedule
    source: ExtractionStrategy
    canonical_url: Optional[str] = None


class ScheduleResult(BaseModel):
    """What the cache hands back to callers."""
    place_link: str
    display_name: str
    schedule: WeeklySchedule
    last_refreshed: datetime
    source: Optional[ExtractionStrategy] = None
    from_cache: bool = True
    stale: bool = False  # served old data because a refresh failed
    error: Optional[str] = None


class NextOpening(BaseModel):
    """When a closed location opens next."""
    weekday: int
    minute_of_day: int
    minutes_until_open: int
    label: str  # "today", "tomorrow" or a day name


class LocationStatus(BaseModel):
    """Open/closed verdict for one location at one instant."""
    place_link: Optional[str] = None
    display_name: Optional[str] = None
    state: StatusState
    message: str
    minutes_until_close: Optional[int] = None
    next_opening: Optional[NextOpening] = None
    closed_today: bool = False
    opening_soon: bool = False
    is_bank_holiday: bool = False
    stale: bool = False


class RouteSummary(BaseModel):
    """Aggregated warning state for a set of locations."""
    should_warn: bool = False
    severity: Severity = Severity.LOW
    message: str = ""
    closed_count: int = 0
    closing_soon_count: int = 0
    opening_soon_count: int = 0
    unknown_count: int = 0
    is_bank_holiday: bool = False
    statuses: List[LocationStatus] = Field(default_factory=list)


class RefreshReport(BaseModel):
    """Outcome of a refresh-all run."""
    total: int = 0
    refreshed: int = 0
    skipped: int = 0  # fresh entries, no fetch needed
    failed: int = 0
    errors: List[str] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None


class HoursConfig(BaseModel):
    """Configuration for the hours engine."""

    # Time
    timezone: str = "Europe/London"
    holiday_country: str = "GB"
    holiday_subdivision: Optional[str] = "ENG"

    # Cache
    cache_file: str = "./opening-hours-cache.json"
    staleness_days: int = 30

    # Extraction
    min_days: int = 3

    # Fetching
    request_timeout_sec: float = 15.0
    retry_attempts: int = 3
    retry_backoff_sec: float = 1.0
    max_concurrent: int = 3
    delay_between_requests_sec: float = 2.0
    user_agent: Optional[str] = None
    accept_language: str = "en-GB,en;q=0.9"

    # Warnings
    closing_soon_minutes: int = 60
    opening_soon_minutes: int = 120

    # Admin
    admin_key: Optional[str] = None

    # Places
    places: List[PlaceReference] = Field(default_factory=list)

    # Debug
    debug_mode: bool = False
    debug_save_html: bool = True
    debug_log_file: str = "./debug/debug.log"
