"""
Main orchestrator for the hours engine.
Wires resolver, extractor, normalizer, cache and evaluator together.
"""

import asyncio
import hmac
import time
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .cache import HoursCache
from .clock import TimeSource, utc_now
from .errors import HoursError, UnauthorizedRefresh
from .extractors import HoursExtractor
from .fetch import PageResolver
from .models import (
    FreshSchedule,
    HoursConfig,
    Instant,
    LocationStatus,
    PlaceReference,
    RefreshReport,
    RouteSummary,
    ScheduleResult,
)
from .services import AvailabilityEvaluator, BankHolidayCalendar, HoursNormalizer
from .utils import get_logger, init_logger


class HoursPipeline:
    """Fetch -> extract -> normalize for one place."""

    def __init__(
        self,
        resolver: PageResolver,
        extractor: HoursExtractor,
        normalizer: Optional[HoursNormalizer] = None
    ):
        self.resolver = resolver
        self.extractor = extractor
        self.normalizer = normalizer or HoursNormalizer()

    async def run(self, place: PlaceReference) -> FreshSchedule:
        """
        Raises:
            FetchFailure, InsufficientData, MalformedSchedule
        """
        document = await self.resolver.resolve(place)
        partial = self.extractor.extract(document)
        schedule = self.normalizer.normalize(partial)

        return FreshSchedule(
            schedule=schedule,
            source=partial.strategy,
            canonical_url=document.canonical_url
        )


def dedupe_places(places: Sequence[PlaceReference]) -> List[PlaceReference]:
    """Drop repeated place links, keeping the first occurrence."""
    seen = set()
    unique = []
    for place in places:
        if place.place_link in seen:
            continue
        seen.add(place.place_link)
        unique.append(place)
    return unique


class HoursService:
    """
    Query interface for callers deciding whether to warn players.

    A location whose hours cannot be determined is reported as unknown
    (None / UNKNOWN), never as open.
    """

    def __init__(
        self,
        config: HoursConfig,
        cache: Optional[HoursCache] = None,
        time_source: Optional[TimeSource] = None,
        evaluator: Optional[AvailabilityEvaluator] = None,
        holidays: Optional[BankHolidayCalendar] = None,
        pipeline: Optional[HoursPipeline] = None
    ):
        self.config = config
        self.logger = get_logger()

        self.time_source = time_source or TimeSource(config.timezone)

        if cache is None:
            pipeline = pipeline or HoursPipeline(
                resolver=PageResolver(config),
                extractor=HoursExtractor(min_days=config.min_days)
            )
            cache = HoursCache(config, pipeline=pipeline)
        self.cache = cache

        self.evaluator = evaluator or AvailabilityEvaluator(
            closing_soon_minutes=config.closing_soon_minutes,
            opening_soon_minutes=config.opening_soon_minutes
        )
        self.holidays = holidays or BankHolidayCalendar(
            country=config.holiday_country,
            subdivision=config.holiday_subdivision
        )

    # ============================================================
    # TIME
    # ============================================================

    def local_time(self, at: Optional[datetime] = None) -> datetime:
        """
        Civil time in the configured timezone. `at=None` means now; a naive
        `at` is read as wall-clock time in that timezone.
        """
        if at is None:
            return self.time_source.local_now()
        if at.tzinfo is None:
            return self.time_source.localize(at)
        return self.time_source.to_local(at)

    def _instant(self, at: Optional[datetime] = None) -> Tuple[Instant, bool]:
        local = self.local_time(at)
        return TimeSource.instant_at(local), self.holidays.is_bank_holiday(local.date())

    # ============================================================
    # QUERIES
    # ============================================================

    async def get_schedule(self, place: PlaceReference, force_refresh: bool = False) -> ScheduleResult:
        return await self.cache.get_schedule(place, force_refresh=force_refresh)

    async def _try_schedule(self, place: PlaceReference) -> Optional[ScheduleResult]:
        try:
            return await self.cache.get_schedule(place)
        except HoursError as e:
            self.logger.warning(f"Hours unknown for {place.display_name}: {e}")
            return None

    async def is_open(self, place: PlaceReference, at: Optional[datetime] = None) -> Optional[bool]:
        """True/False, or None when the hours are unknown."""
        result = await self._try_schedule(place)
        if result is None:
            return None
        instant, _ = self._instant(at)
        return self.evaluator.is_open(result.schedule, instant)

    async def minutes_until_close(self, place: PlaceReference, at: Optional[datetime] = None) -> Optional[int]:
        """Minutes until close, or None when closed or unknown."""
        result = await self._try_schedule(place)
        if result is None:
            return None
        instant, _ = self._instant(at)
        return self.evaluator.minutes_until_close(result.schedule, instant)

    async def location_status(self, place: PlaceReference, at: Optional[datetime] = None) -> LocationStatus:
        result = await self._try_schedule(place)
        instant, is_bank_holiday = self._instant(at)

        status = self.evaluator.classify(
            result.schedule if result is not None else None,
            instant,
            is_bank_holiday=is_bank_holiday,
            stale=result.stale if result is not None else False
        )
        return status.model_copy(update={
            'place_link': place.place_link,
            'display_name': place.display_name,
        })

    async def route_status(self, places: Sequence[PlaceReference], at: Optional[datetime] = None) -> RouteSummary:
        """Statuses for every place on a route, rolled up into one warning."""
        # Pin one moment so every location is judged at the same time
        local = self.local_time(at)

        statuses = []
        for place in dedupe_places(places):
            statuses.append(await self.location_status(place, local))

        return self.evaluator.summarize(
            statuses,
            is_bank_holiday=self.holidays.is_bank_holiday(local.date())
        )

    # ============================================================
    # ADMIN REFRESH
    # ============================================================

    def authorize(self, admin_key: Optional[str]):
        """
        Raises:
            UnauthorizedRefresh: no admin key configured, or the key is wrong
        """
        expected = self.config.admin_key
        if not expected:
            raise UnauthorizedRefresh("Forced refresh is disabled: no admin key configured")
        if not admin_key or not hmac.compare_digest(admin_key.encode('utf-8'), expected.encode('utf-8')):
            raise UnauthorizedRefresh("Invalid admin key")

    async def refresh_all(
        self,
        places: Sequence[PlaceReference],
        admin_key: Optional[str] = None,
        force: bool = True
    ) -> RefreshReport:
        """
        Refresh many places with bounded concurrency and a polite delay
        after each network fetch. Forcing (bypassing staleness) needs the
        admin key.

        Raises:
            UnauthorizedRefresh: forced without a valid admin key
        """
        if force:
            self.authorize(admin_key)

        unique = dedupe_places(places)
        report = RefreshReport(total=len(unique), started_at=utc_now())
        semaphore = asyncio.Semaphore(max(1, self.config.max_concurrent))
        start_time = time.time()

        async def refresh_one(place: PlaceReference):
            async with semaphore:
                try:
                    result = await self.cache.get_schedule(place, force_refresh=force)
                except HoursError as e:
                    self.logger.error(f"Failed: {place.display_name}: {e}")
                    report.failed += 1
                    report.errors.append(f"{place.place_link}: {e}")
                    result = None

                if result is not None:
                    if result.stale:
                        self.logger.warning(f"Kept stale hours for {place.display_name}")
                        report.failed += 1
                        report.errors.append(f"{place.place_link}: {result.error}")
                    elif result.from_cache:
                        report.skipped += 1
                    else:
                        self.logger.success(f"Refreshed: {place.display_name}")
                        report.refreshed += 1

                fetched = result is None or not result.from_cache or result.stale
                if fetched and self.config.delay_between_requests_sec > 0:
                    await asyncio.sleep(self.config.delay_between_requests_sec)

        await asyncio.gather(*(refresh_one(place) for place in unique))

        report.duration_seconds = time.time() - start_time
        return report


async def run_refresh(
    config: HoursConfig,
    force: bool = False,
    admin_key: Optional[str] = None
) -> RefreshReport:
    """
    Entry point for refreshing every configured place.

    Args:
        config: Engine configuration, including the places
        force: Refresh even fresh entries (requires the admin key)
        admin_key: Shared secret for forced refreshes
    """
    logger = init_logger(
        debug_mode=config.debug_mode,
        debug_log_file=config.debug_log_file if config.debug_mode else None
    )

    logger.print_header("Opening Hours Refresh")

    service = HoursService(config)

    if not config.places:
        logger.warning("No places to refresh")
        return RefreshReport()

    logger.print_section(f"Refreshing {len(config.places)} place(s)")
    report = await service.refresh_all(config.places, admin_key=admin_key, force=force)

    logger.print_summary(
        total=report.total,
        refreshed=report.refreshed,
        failed=report.failed,
        duration=report.duration_seconds or 0.0,
        skipped=report.skipped
    )

    return report
