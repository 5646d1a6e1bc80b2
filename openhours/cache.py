"""
Persistent hours cache.
Serves schedules from a JSON file and refreshes them when stale or forced.
"""

import asyncio
import json
import os
import shutil
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, Optional

import pytz
from pydantic import ValidationError

from .clock import utc_now
from .errors import HoursError
from .models import (
    CacheEntry,
    DayHours,
    ExtractionStrategy,
    FreshSchedule,
    HoursCacheFile,
    HoursConfig,
    PlaceReference,
    ScheduleResult,
    WeeklySchedule,
)
from .utils import get_logger
from .utils.validators import ScheduleValidator


class HoursCache:
    """
    Place-link keyed schedule cache backed by one human-readable JSON file.

    Fresh entries are served without touching the network. A stale or
    missing entry is refreshed through the pipeline; if that fails and an
    older entry exists, the old schedule is served and marked stale.
    Refreshes of the same place_link never overlap.
    """

    def __init__(
        self,
        config: HoursConfig,
        pipeline=None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Args:
            config: Engine configuration (cache file, staleness threshold)
            pipeline: Object with `async run(PlaceReference) -> FreshSchedule`
            clock: Returns the current aware datetime
        """
        self.config = config
        self.pipeline = pipeline
        self.clock = clock
        self.logger = get_logger()

        self.cache_file = Path(config.cache_file)
        self.staleness = timedelta(days=config.staleness_days)

        self._locks: Dict[str, asyncio.Lock] = {}
        self._entries: Dict[str, CacheEntry] = self._load()

    # ============================================================
    # PERSISTENCE
    # ============================================================

    def _load(self) -> Dict[str, CacheEntry]:
        """Read the cache file. An unreadable file is logged and treated as empty."""
        if not self.cache_file.exists():
            return {}

        try:
            with open(self.cache_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Could not read hours cache {self.cache_file}: {e}. Starting empty.")
            return {}

        if not isinstance(data, dict):
            self.logger.error(f"Hours cache {self.cache_file} is not a JSON object. Starting empty.")
            return {}

        entries = {}
        for place_link, raw in data.items():
            try:
                entries[place_link] = CacheEntry.model_validate(raw)
            except ValidationError as e:
                self.logger.warning(f"Dropping unreadable cache entry for {place_link}: {e}")

        self.logger.debug(f"Loaded {len(entries)} cached schedule(s) from {self.cache_file}")
        return entries

    def save(self):
        """Write all entries to the cache file atomically (temp file + rename)."""
        content = json.dumps(
            HoursCacheFile(self._entries).model_dump(mode='json'),
            indent=2,
            ensure_ascii=False
        )

        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            self._atomic_write(content)
            self.logger.debug(f"Hours cache saved: {self.cache_file}")
        except OSError as e:
            self.logger.error(f"Error saving hours cache: {e}", exc_info=True)

    def _atomic_write(self, content: str):
        temp_fd, temp_path = tempfile.mkstemp(
            dir=self.cache_file.parent,
            prefix='.tmp_',
            suffix='.json'
        )

        try:
            with os.fdopen(temp_fd, 'w', encoding='utf-8') as f:
                f.write(content)
                f.write('\n')

            shutil.move(temp_path, self.cache_file)

        except Exception:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    # ============================================================
    # LOOKUP
    # ============================================================

    def entries(self) -> Dict[str, CacheEntry]:
        """Copy of every cached entry, keyed by place_link."""
        return {key: entry.model_copy(deep=True) for key, entry in self._entries.items()}

    def get_entry(self, place_link: str) -> Optional[CacheEntry]:
        entry = self._entries.get(place_link.strip())
        return entry.model_copy(deep=True) if entry is not None else None

    def age(self, entry: CacheEntry) -> timedelta:
        last_refreshed = entry.last_refreshed
        if last_refreshed.tzinfo is None:
            last_refreshed = pytz.utc.localize(last_refreshed)
        return self.clock() - last_refreshed

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self.age(entry) < self.staleness

    def _lock_for(self, place_link: str) -> asyncio.Lock:
        if place_link not in self._locks:
            self._locks[place_link] = asyncio.Lock()
        return self._locks[place_link]

    @staticmethod
    def _result(
        place_link: str,
        entry: CacheEntry,
        from_cache: bool = True,
        stale: bool = False,
        error: Optional[str] = None
    ) -> ScheduleResult:
        return ScheduleResult(
            place_link=place_link,
            display_name=entry.display_name,
            schedule=entry.schedule.model_copy(deep=True),
            last_refreshed=entry.last_refreshed,
            source=entry.source,
            from_cache=from_cache,
            stale=stale,
            error=error
        )

    async def get_schedule(self, place: PlaceReference, force_refresh: bool = False) -> ScheduleResult:
        """
        Get the schedule for a place, refreshing when stale or forced.

        Raises:
            HoursError: refresh failed and nothing was cached before
        """
        key = place.place_link

        entry = self._entries.get(key)
        if not force_refresh and entry is not None and self.is_fresh(entry):
            self.logger.debug(f"Cache hit for {place.display_name}")
            return self._result(key, entry)

        async with self._lock_for(key):
            # A concurrent caller may have refreshed while we waited
            entry = self._entries.get(key)
            if not force_refresh and entry is not None and self.is_fresh(entry):
                self.logger.debug(f"Cache hit for {place.display_name} after waiting")
                return self._result(key, entry)

            self.logger.debug(
                f"Cache {'refresh forced' if force_refresh else 'miss'} for {place.display_name}"
            )

            try:
                if self.pipeline is None:
                    raise HoursError("no refresh pipeline configured")
                fresh: FreshSchedule = await self.pipeline.run(place)
                schedule = ScheduleValidator.validate(fresh.schedule)

            except HoursError as e:
                if entry is None:
                    raise
                self.logger.warning(
                    f"Refresh failed for {place.display_name}: {e}. "
                    f"Serving stale hours from {entry.last_refreshed:%Y-%m-%d}"
                )
                return self._result(key, entry, stale=True, error=str(e))

            new_entry = CacheEntry(
                display_name=place.display_name,
                schedule=schedule,
                last_refreshed=self.clock(),
                source=fresh.source,
                canonical_url=fresh.canonical_url
            )
            self._entries[key] = new_entry
            self.save()

            return self._result(key, new_entry, from_cache=False)

    # ============================================================
    # MANUAL OVERRIDE
    # ============================================================

    async def override(
        self,
        place_link: str,
        schedule: WeeklySchedule,
        display_name: Optional[str] = None,
        note: Optional[str] = None
    ) -> CacheEntry:
        """
        Replace a place's whole schedule by hand, with an audit timestamp.

        Raises:
            MalformedSchedule: the schedule is not a complete week
        """
        key = place_link.strip()
        async with self._lock_for(key):
            return self._write_override(key, schedule, display_name, note)

    async def override_day(
        self,
        place_link: str,
        weekday: int,
        hours: Optional[DayHours],
        display_name: Optional[str] = None,
        note: Optional[str] = None
    ) -> CacheEntry:
        """
        Replace one weekday (None = closed), starting from the cached
        schedule or an all-closed week.
        """
        key = place_link.strip()
        async with self._lock_for(key):
            existing = self._entries.get(key)
            base = existing.schedule if existing is not None else WeeklySchedule.all_closed()
            return self._write_override(key, base.with_day(weekday, hours), display_name, note)

    def _write_override(
        self,
        place_link: str,
        schedule: WeeklySchedule,
        display_name: Optional[str],
        note: Optional[str]
    ) -> CacheEntry:
        schedule = ScheduleValidator.validate(schedule)
        existing = self._entries.get(place_link)
        now = self.clock()

        if display_name is None:
            display_name = existing.display_name if existing is not None else place_link

        entry = CacheEntry(
            display_name=display_name,
            schedule=schedule,
            last_refreshed=now,
            source=ExtractionStrategy.MANUAL_OVERRIDE,
            canonical_url=existing.canonical_url if existing is not None else None,
            overridden_at=now,
            override_note=note
        )
        self._entries[place_link] = entry
        self.save()

        self.logger.info(f"Manual override saved for {display_name}" + (f": {note}" if note else ""))
        return entry.model_copy(deep=True)
