"""
Tests for the command line interface and place input handling.
"""

import json

import pytest
import yaml
from click.testing import CliRunner

from openhours.cli import ADMIN_KEY_ENV, PlaceInputProcessor, build_config, main


BELL_LINK = "https://maps.app.goo.gl/bell"


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / "opening-hours-cache.json"


@pytest.fixture
def config_file(tmp_path, cache_path, monkeypatch):
    monkeypatch.delenv(ADMIN_KEY_ENV, raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        'cache': {'file': str(cache_path)},
        'fetch': {'retry_backoff_sec': 0, 'delay_between_requests_sec': 0},
        'admin': {'key': 'letmein'},
    }), encoding='utf-8')
    return path


def invoke(config_file, *args):
    runner = CliRunner()
    return runner.invoke(main, ['--config', str(config_file), *args])


class TestOverrideCommand:
    """Hand corrections through the CLI."""

    def test_closed_day_written(self, config_file, cache_path):
        result = invoke(config_file, 'override', BELL_LINK, '--day', 'sunday', '--closed',
                        '--name', 'The Old Bell', '--note', 'Closed for refurbishment')

        assert result.exit_code == 0, result.output

        with open(cache_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        entry = data[BELL_LINK]
        assert entry["display_name"] == "The Old Bell"
        assert entry["schedule"]["sunday"] is None
        assert entry["source"] == "manual_override"
        assert entry["override_note"] == "Closed for refurbishment"
        assert entry["overridden_at"] is not None

    def test_open_and_close(self, config_file, cache_path):
        result = invoke(config_file, 'override', BELL_LINK, '--day', 'Friday',
                        '--open', '18:00', '--close', '02:00')

        assert result.exit_code == 0, result.output

        with open(cache_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        assert data[BELL_LINK]["schedule"]["friday"] == {"open": "18:00", "close": "02:00"}

    def test_closed_with_times_is_usage_error(self, config_file):
        result = invoke(config_file, 'override', BELL_LINK, '--day', 'sunday', '--closed', '--open', '09:00')
        assert result.exit_code == 2

    def test_missing_close_is_usage_error(self, config_file):
        result = invoke(config_file, 'override', BELL_LINK, '--day', 'sunday', '--open', '09:00')
        assert result.exit_code == 2

    def test_bad_time(self, config_file, cache_path):
        result = invoke(config_file, 'override', BELL_LINK, '--day', 'sunday', '--open', '25:00', '--close', '17:00')

        assert result.exit_code == 2
        assert not cache_path.exists()


class TestShowAndStatus:
    """Reading the cache back."""

    def test_show_empty(self, config_file):
        result = invoke(config_file, 'show')

        assert result.exit_code == 0
        assert "No cached schedules" in result.output

    def test_show_lists_override(self, config_file):
        invoke(config_file, 'override', BELL_LINK, '--day', 'sunday', '--closed', '--note', 'Refit')
        result = invoke(config_file, 'show')

        assert result.exit_code == 0
        assert BELL_LINK in result.output
        assert "manual_override" in result.output
        assert "Refit" in result.output

    def test_status_at_local_time(self, config_file):
        invoke(config_file, 'override', BELL_LINK, '--day', 'sunday', '--open', '09:00', '--close', '19:00',
               '--name', 'The Old Bell')

        # 2025-01-05 is a Sunday
        result = invoke(config_file, 'status', '--at', '2025-01-05 20:09')

        assert result.exit_code == 0, result.output
        assert "Warning (high): 1 location is currently closed" in result.output

    def test_status_open(self, config_file):
        invoke(config_file, 'override', BELL_LINK, '--day', 'sunday', '--open', '09:00', '--close', '19:00')
        result = invoke(config_file, 'status', '--at', '2025-01-05 12:00')

        assert result.exit_code == 0, result.output
        assert "All places open" in result.output

    def test_status_nothing_to_check(self, config_file):
        result = invoke(config_file, 'status')
        assert result.exit_code == 1


class TestRefreshCommand:
    """Refresh gating; no network is reached in these cases."""

    def test_no_places(self, config_file):
        result = invoke(config_file, 'refresh')
        assert result.exit_code == 1

    def test_force_with_wrong_key(self, config_file, tmp_path):
        places = tmp_path / "places.yaml"
        places.write_text(yaml.safe_dump([{'place_link': BELL_LINK, 'display_name': 'The Old Bell'}]),
                          encoding='utf-8')

        result = invoke(config_file, 'refresh', '--force', '--admin-key', 'wrong', '--place-file', str(places))

        assert result.exit_code == 1
        assert "Invalid admin key" in result.output


class TestPlaceInputProcessor:
    def test_dedupes_across_sources(self, tmp_path):
        yaml_file = tmp_path / "places.yaml"
        yaml_file.write_text(yaml.safe_dump({'places': [
            {'place_link': BELL_LINK, 'display_name': 'The Old Bell'},
            'https://maps.app.goo.gl/hall',
        ]}), encoding='utf-8')

        csv_file = tmp_path / "places.csv"
        csv_file.write_text(
            "place_link,display_name\n"
            f"{BELL_LINK},Bell again\n"
            "https://maps.app.goo.gl/cafe,Corner Cafe\n",
            encoding='utf-8'
        )

        processor = PlaceInputProcessor()
        processor.add_places_from_file(str(yaml_file))
        processor.add_places_from_csv(str(csv_file))

        places = processor.get_places()
        assert [p.place_link for p in places] == [
            BELL_LINK, "https://maps.app.goo.gl/hall", "https://maps.app.goo.gl/cafe"
        ]
        assert places[0].display_name == "The Old Bell"
        assert places[1].display_name == "https://maps.app.goo.gl/hall"
        assert "from 2 source(s)" in processor.get_summary()

    def test_csv_missing_column(self, tmp_path):
        csv_file = tmp_path / "places.csv"
        csv_file.write_text("url,name\nhttps://maps.app.goo.gl/x,X\n", encoding='utf-8')

        with pytest.raises(ValueError):
            PlaceInputProcessor().add_places_from_csv(str(csv_file))


class TestBuildConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv(ADMIN_KEY_ENV, raising=False)
        config = build_config({})

        assert config.timezone == "Europe/London"
        assert config.staleness_days == 30
        assert config.admin_key is None
        assert config.places == []

    def test_admin_key_from_environment(self, monkeypatch):
        monkeypatch.setenv(ADMIN_KEY_ENV, "from-env")
        config = build_config({'admin': {'key': 'from-file'}})
        assert config.admin_key == "from-env"
