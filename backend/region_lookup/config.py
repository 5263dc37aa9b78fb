"""
config.py — Process configuration read from environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_ROUND_PLACES = 4
MAX_ROUND_PLACES = 6


def _int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %d", key, raw, default)
        return default


def _float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", key, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    """
    Attributes:
        gpkg_path:           GeoPackage file with the region boundaries.
        table:               Region table inside the GeoPackage.
        geom_column:         Geometry column of the region table.
        round_places:        Decimal places query coordinates are rounded to.
        candidate_limit:     Maximum R-tree candidates tested per lookup.
        elevation_db_path:   SQLite file caching fetched elevations.
        google_api_key:      Credential for the Google Elevation API.
        elevation_timeout:   Seconds before an elevation request is abandoned.
        default_parent_code: Code used by /children and /latlng when none is given.
    """

    gpkg_path: str = "data/gadm_410.gpkg"
    table: str = "gadm_410"
    geom_column: str = "geom"
    round_places: int = DEFAULT_ROUND_PLACES
    candidate_limit: int = 200
    elevation_db_path: str = "data/elevations.db"
    google_api_key: str = ""
    elevation_timeout: float = 10.0
    default_parent_code: str = "IDN"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        round_places = _int(env, "ROUND_PLACES", DEFAULT_ROUND_PLACES)
        if not 0 <= round_places <= MAX_ROUND_PLACES:
            round_places = DEFAULT_ROUND_PLACES

        candidate_limit = _int(env, "CANDIDATE_LIMIT", 200)
        if candidate_limit < 1:
            candidate_limit = 200

        return cls(
            gpkg_path=env.get("GPKG_PATH") or cls.gpkg_path,
            table=env.get("GPKG_TABLE") or cls.table,
            geom_column=env.get("GPKG_GEOM_COL") or cls.geom_column,
            round_places=round_places,
            candidate_limit=candidate_limit,
            elevation_db_path=env.get("ELEVATION_DB_PATH") or cls.elevation_db_path,
            google_api_key=env.get("GOOGLE_API_KEY", ""),
            elevation_timeout=_float(env, "ELEVATION_TIMEOUT", 10.0),
            default_parent_code=env.get("GPKG_PARENT_CODE") or cls.default_parent_code,
        )
