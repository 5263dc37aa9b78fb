"""
test_config.py — Tests for environment-driven settings.
"""

import pytest

from region_lookup.config import Settings


class TestSettingsFromEnv:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.gpkg_path == "data/gadm_410.gpkg"
        assert settings.table == "gadm_410"
        assert settings.geom_column == "geom"
        assert settings.round_places == 4
        assert settings.candidate_limit == 200
        assert settings.elevation_db_path == "data/elevations.db"
        assert settings.google_api_key == ""
        assert settings.default_parent_code == "IDN"

    def test_overrides(self):
        settings = Settings.from_env({
            "GPKG_PATH": "/data/world.gpkg",
            "GPKG_TABLE": "gadm_world",
            "GPKG_GEOM_COL": "shape",
            "ROUND_PLACES": "6",
            "CANDIDATE_LIMIT": "50",
            "ELEVATION_DB_PATH": "/var/cache/elev.db",
            "GOOGLE_API_KEY": "secret",
            "ELEVATION_TIMEOUT": "2.5",
            "GPKG_PARENT_CODE": "MYS",
        })
        assert settings.gpkg_path == "/data/world.gpkg"
        assert settings.table == "gadm_world"
        assert settings.geom_column == "shape"
        assert settings.round_places == 6
        assert settings.candidate_limit == 50
        assert settings.elevation_db_path == "/var/cache/elev.db"
        assert settings.google_api_key == "secret"
        assert settings.elevation_timeout == 2.5
        assert settings.default_parent_code == "MYS"

    @pytest.mark.parametrize("raw", ["-1", "7", "abc"])
    def test_bad_round_places_fall_back(self, raw):
        assert Settings.from_env({"ROUND_PLACES": raw}).round_places == 4

    def test_zero_round_places_allowed(self):
        assert Settings.from_env({"ROUND_PLACES": "0"}).round_places == 0

    def test_bad_candidate_limit_falls_back(self):
        assert Settings.from_env({"CANDIDATE_LIMIT": "0"}).candidate_limit == 200

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("GPKG_TABLE", "from_env")
        assert Settings.from_env().table == "from_env"
