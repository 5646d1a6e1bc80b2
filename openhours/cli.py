"""
Command line interface for the opening hours engine.
Refresh, inspect and hand-correct cached opening hours.
"""

import os
import sys
import csv
import asyncio
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import click
import yaml

from .cache import HoursCache
from .errors import HoursError, UnauthorizedRefresh
from .models import DAY_KEYS, DayHours, HoursConfig, PlaceReference, StatusState, hhmm_to_minute
from .services import HoursNormalizer
from .utils import init_logger


ADMIN_KEY_ENV = 'OPENHOURS_ADMIN_KEY'

STATE_STYLES = {
    StatusState.OPEN: "[green]open[/green]",
    StatusState.CLOSING_SOON: "[yellow]closing soon[/yellow]",
    StatusState.CLOSED: "[red]closed[/red]",
    StatusState.UNKNOWN: "[magenta]unknown[/magenta]",
}


class PlaceInputProcessor:
    """Process and deduplicate place references from various input sources."""

    def __init__(self):
        self.places: List[PlaceReference] = []
        self.seen_links: set = set()
        self.sources: List[str] = []

    def add_place(self, place_link: str, display_name: Optional[str] = None, source: str = "CLI"):
        """Add a single place (deduplicates automatically)."""
        place_link = (place_link or '').strip()
        if not place_link:
            return

        if place_link not in self.seen_links:
            self.places.append(PlaceReference(
                place_link=place_link,
                display_name=(display_name or '').strip() or place_link
            ))
            self.seen_links.add(place_link)
            if source not in self.sources:
                self.sources.append(source)

    def add_places_from_list(self, items: list, source: str = "config"):
        """
        Add places from a list of {place_link, display_name} mappings or
        bare link strings.
        """
        for item in items or []:
            if isinstance(item, str):
                self.add_place(item, source=source)
            elif isinstance(item, dict):
                self.add_place(
                    item.get('place_link') or item.get('link', ''),
                    item.get('display_name') or item.get('name'),
                    source
                )
            else:
                raise ValueError(f"Unrecognised place entry: {item!r}")

    def add_places_from_file(self, file_path: str):
        """Add places from a YAML file: a list, or a mapping with a `places` key."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Place file not found: {file_path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or []

        if isinstance(data, dict):
            data = data.get('places', [])

        self.add_places_from_list(data, f"file:{file_path}")

    def add_places_from_csv(
        self,
        csv_path: str,
        link_column: str = "place_link",
        name_column: str = "display_name"
    ):
        """Add places from a CSV file."""
        path = Path(csv_path)
        if not path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_path}")

        with open(path, 'r', encoding='utf-8', newline='') as f:
            reader = csv.DictReader(f)
            fieldnames = reader.fieldnames or []

            if link_column not in fieldnames:
                raise ValueError(
                    f"Column '{link_column}' not found in CSV. "
                    f"Available columns: {', '.join(fieldnames)}"
                )

            for row in reader:
                self.add_place(
                    row.get(link_column, ''),
                    row.get(name_column),
                    f"csv:{csv_path}"
                )

    def get_places(self) -> List[PlaceReference]:
        """Get the deduplicated list of places in input order."""
        return self.places

    def get_summary(self) -> str:
        """Get a summary of place sources."""
        return (
            f"Loaded {len(self.places)} unique place(s) "
            f"from {len(self.sources)} source(s): {', '.join(self.sources)}"
        )


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file."""
    path = Path(config_path)

    if not path.exists():
        click.echo(f"Warning: Config file not found: {config_path}", err=True)
        click.echo("Using default configuration", err=True)
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        click.echo(f"Error loading config file: {e}", err=True)
        sys.exit(1)


def build_config(
    config_data: dict,
    places: Optional[List[PlaceReference]] = None,
    debug: bool = False
) -> HoursConfig:
    """Build HoursConfig from config file values."""

    time_section = config_data.get('time', {})
    cache_section = config_data.get('cache', {})
    extraction_section = config_data.get('extraction', {})
    fetch_section = config_data.get('fetch', {})
    warnings_section = config_data.get('warnings', {})
    admin_section = config_data.get('admin', {})
    debug_section = config_data.get('debug', {})

    if places is None:
        processor = PlaceInputProcessor()
        processor.add_places_from_list(config_data.get('places', []))
        places = processor.get_places()

    return HoursConfig(
        timezone=time_section.get('timezone', 'Europe/London'),
        holiday_country=time_section.get('holiday_country', 'GB'),
        holiday_subdivision=time_section.get('holiday_subdivision', 'ENG'),
        cache_file=cache_section.get('file', './opening-hours-cache.json'),
        staleness_days=cache_section.get('staleness_days', 30),
        min_days=extraction_section.get('min_days', 3),
        request_timeout_sec=fetch_section.get('request_timeout_sec', 15.0),
        retry_attempts=fetch_section.get('retry_attempts', 3),
        retry_backoff_sec=fetch_section.get('retry_backoff_sec', 1.0),
        max_concurrent=fetch_section.get('max_concurrent', 3),
        delay_between_requests_sec=fetch_section.get('delay_between_requests_sec', 2.0),
        user_agent=fetch_section.get('user_agent'),
        accept_language=fetch_section.get('accept_language', 'en-GB,en;q=0.9'),
        closing_soon_minutes=warnings_section.get('closing_soon_minutes', 60),
        opening_soon_minutes=warnings_section.get('opening_soon_minutes', 120),
        admin_key=os.environ.get(ADMIN_KEY_ENV) or admin_section.get('key'),
        places=places,
        debug_mode=debug,
        debug_save_html=debug_section.get('save_html', True),
        debug_log_file=debug_section.get('log_file', './debug/debug.log'),
    )


def _config_from_context(ctx: click.Context, places: Optional[List[PlaceReference]] = None) -> HoursConfig:
    try:
        config = build_config(ctx.obj['config_data'], places=places, debug=ctx.obj['debug'])
    except ValueError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(1)

    init_logger(
        debug_mode=config.debug_mode,
        debug_log_file=config.debug_log_file if config.debug_mode else None
    )
    return config


@click.group()
@click.option(
    '--config',
    'config_path',
    type=click.Path(dir_okay=False),
    default='config.yaml',
    help='Path to configuration file (default: config.yaml)'
)
@click.option(
    '--debug',
    is_flag=True,
    help='Enable debug mode (HTML snapshots, detailed logs)'
)
@click.version_option(version='1.0.0', prog_name='Opening Hours')
@click.pass_context
def main(ctx: click.Context, config_path: str, debug: bool):
    """
    Opening hours engine

    Scrape opening hours from shared map links, cache them, and answer
    "is this place open right now" in the configured timezone.

    Examples:

      # Refresh stale entries for the places in config.yaml
      python main.py refresh

      # Force a full refresh (admin key required)
      python main.py refresh --force --admin-key $OPENHOURS_ADMIN_KEY

      # Status of every place at a given local time
      python main.py status --at "2025-01-05 20:09"

      # Mark Sunday as closed by hand
      python main.py override https://maps.app.goo.gl/abc --day sunday --closed
    """
    ctx.ensure_object(dict)
    ctx.obj['config_data'] = load_config(config_path)
    ctx.obj['debug'] = debug


@main.command()
@click.option('--force', is_flag=True, help='Refresh fresh entries too (requires --admin-key)')
@click.option('--admin-key', help='Shared secret for forced refreshes')
@click.option(
    '--place-file',
    type=click.Path(exists=True),
    help='YAML file with places (list of place_link/display_name)'
)
@click.option(
    '--csv-file',
    type=click.Path(exists=True),
    help='CSV file with place_link and display_name columns'
)
@click.pass_context
def refresh(
    ctx: click.Context,
    force: bool,
    admin_key: Optional[str],
    place_file: Optional[str],
    csv_file: Optional[str]
):
    """Refresh opening hours for all places."""
    processor = PlaceInputProcessor()

    try:
        if place_file:
            processor.add_places_from_file(place_file)
        if csv_file:
            processor.add_places_from_csv(csv_file)
        # Fall back to the places in the config file
        if not processor.get_places():
            processor.add_places_from_list(ctx.obj['config_data'].get('places', []), "config.yaml")
    except (OSError, ValueError, yaml.YAMLError) as e:
        click.echo(f"Error reading places: {e}", err=True)
        sys.exit(1)

    if not processor.get_places():
        click.echo("Error: No places provided.", err=True)
        click.echo("Configure `places:` in config.yaml or pass --place-file / --csv-file", err=True)
        sys.exit(1)

    click.echo(processor.get_summary())

    config = _config_from_context(ctx, places=processor.get_places())

    from .orchestrator import run_refresh

    try:
        report = asyncio.run(run_refresh(config, force=force, admin_key=admin_key))
    except UnauthorizedRefresh as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if report.failed:
        sys.exit(1)


@main.command()
@click.option(
    '--at',
    'at',
    type=click.DateTime(formats=['%Y-%m-%d %H:%M']),
    help='Local time to evaluate, "YYYY-MM-DD HH:MM" (default: now)'
)
@click.pass_context
def status(ctx: click.Context, at: Optional[datetime]):
    """Show open/closed status for all places."""
    config = _config_from_context(ctx)

    from .orchestrator import HoursService

    service = HoursService(config)
    logger = service.logger

    places = config.places or [
        PlaceReference(place_link=link, display_name=entry.display_name)
        for link, entry in service.cache.entries().items()
    ]
    if not places:
        click.echo("No places configured and the cache is empty.", err=True)
        sys.exit(1)

    summary = asyncio.run(service.route_status(places, at=at))
    local = service.local_time(at)

    rows = []
    for item in summary.statuses:
        closes_in = item.minutes_until_close if item.minutes_until_close is not None else ""
        rows.append([
            item.display_name,
            STATE_STYLES[item.state],
            closes_in,
            item.message + (" (stale)" if item.stale else ""),
        ])

    logger.print_table(
        title=f"Status at {local:%A %Y-%m-%d %H:%M %Z}",
        data=rows,
        headers=["Place", "State", "Closes in (min)", "Message"]
    )

    if summary.should_warn:
        click.echo(f"Warning ({summary.severity.value}): {summary.message}")
    else:
        click.echo("All places open")


@main.command()
@click.pass_context
def show(ctx: click.Context):
    """Print cached schedules."""
    config = _config_from_context(ctx)
    cache = HoursCache(config)
    logger = cache.logger

    entries = cache.entries()
    if not entries:
        click.echo(f"No cached schedules in {config.cache_file}")
        return

    for place_link, entry in entries.items():
        rows = [
            [day_key.capitalize(), HoursNormalizer.describe_day(day)]
            for day_key, day in zip(DAY_KEYS, entry.schedule.days)
        ]
        logger.print_table(title=entry.display_name, data=rows, headers=["Day", "Hours"])

        details = f"{place_link} | refreshed {entry.last_refreshed:%Y-%m-%d %H:%M}"
        if entry.source:
            details += f" | {entry.source.value}"
        if entry.overridden_at:
            details += f" | overridden {entry.overridden_at:%Y-%m-%d %H:%M}"
            if entry.override_note:
                details += f": {entry.override_note}"
        click.echo(details)


@main.command()
@click.argument('place_link')
@click.option(
    '--day',
    required=True,
    type=click.Choice(DAY_KEYS, case_sensitive=False),
    help='Weekday to change'
)
@click.option('--closed', is_flag=True, help='Mark the day as closed')
@click.option('--open', 'open_time', help='Opening time, HH:MM (24-hour)')
@click.option('--close', 'close_time', help='Closing time, HH:MM (24-hour); at or before --open means after midnight')
@click.option('--name', 'display_name', help='Display name (default: keep the cached one)')
@click.option('--note', help='Why the hours were changed by hand')
@click.pass_context
def override(
    ctx: click.Context,
    place_link: str,
    day: str,
    closed: bool,
    open_time: Optional[str],
    close_time: Optional[str],
    display_name: Optional[str],
    note: Optional[str]
):
    """Set one day's hours for a place by hand."""
    if closed and (open_time or close_time):
        raise click.UsageError("Use either --closed or --open/--close, not both")
    if not closed and not (open_time and close_time):
        raise click.UsageError("Give --closed, or both --open and --close")

    hours = None
    if not closed:
        try:
            hours = DayHours(open_minute=hhmm_to_minute(open_time), close_minute=hhmm_to_minute(close_time))
        except ValueError as e:
            raise click.BadParameter(str(e))

    config = _config_from_context(ctx)
    cache = HoursCache(config)

    try:
        entry = asyncio.run(cache.override_day(
            place_link,
            DAY_KEYS.index(day.lower()),
            hours,
            display_name=display_name,
            note=note
        ))
    except HoursError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    cache.logger.success(
        f"{entry.display_name}: {day.capitalize()} set to {HoursNormalizer.describe_day(hours)}"
    )


if __name__ == '__main__':
    main()
