"""
elevation.py — Cached region elevations backed by the Google Elevation API.

Responsible for:
    - A write-once SQLite store of region code → elevation (metres).
    - Fetching missing elevations from the external provider.
    - Falling back to a default elevation, without caching it, when the
      provider fails.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Optional, Protocol, Union

import requests

from region_lookup.errors import ProviderError, StoreError

logger = logging.getLogger(__name__)

GOOGLE_ELEVATION_URL = "https://maps.googleapis.com/maps/api/elevation/json"
DEFAULT_ELEVATION = 0.0

_SCHEMA = """
CREATE TABLE IF NOT EXISTS elevations (
    gid TEXT PRIMARY KEY,
    elevation REAL NOT NULL
)
"""


class CacheMiss:
    """Marker returned by ElevationStore.get when no value is stored."""

    _instance: Optional["CacheMiss"] = None

    def __new__(cls) -> "CacheMiss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "CACHE_MISS"


CACHE_MISS = CacheMiss()


# ── Store ─────────────────────────────────────────────────────────────────────

class ElevationStore:
    """
    SQLite table of cached elevations.

    A fresh connection is opened per operation so request threads never
    share one.
    """

    def __init__(self, path: Union[str, Path], timeout: float = 5.0) -> None:
        self.path = Path(path)
        self.timeout = timeout
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(_SCHEMA)
        except sqlite3.Error as exc:
            raise StoreError(f"failed to create elevations table: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.path), timeout=self.timeout)

    def get(self, code: str) -> Union[float, CacheMiss]:
        try:
            with closing(self._connect()) as conn:
                row = conn.execute(
                    "SELECT elevation FROM elevations WHERE gid = ?", (code,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"elevation lookup failed for {code}: {exc}") from exc
        return CACHE_MISS if row is None else float(row[0])

    def insert(self, code: str, elevation: float) -> bool:
        """
        Insert an elevation; never overwrites.

        Returns:
            False if another writer stored the code first, True otherwise.
        """
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    "INSERT INTO elevations (gid, elevation) VALUES (?, ?)",
                    (code, float(elevation)),
                )
        except sqlite3.IntegrityError:
            logger.debug("Elevation for %s already stored by another writer", code)
            return False
        except sqlite3.Error as exc:
            raise StoreError(f"failed to save elevation for {code}: {exc}") from exc
        return True


# ── Provider ──────────────────────────────────────────────────────────────────

class ElevationProvider(Protocol):
    def fetch(self, lat: float, lon: float) -> float: ...


class GoogleElevationProvider:
    """Client for the Google Maps Elevation API."""

    def __init__(self, api_key: str, timeout: float = 10.0, url: str = GOOGLE_ELEVATION_URL) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.url = url

    def fetch(self, lat: float, lon: float) -> float:
        """
        Fetch the elevation at (lat, lon).

        Raises:
            ProviderError: On a missing key, transport failure, non-200
                status, undecodable body, non-OK API status, or empty results.
        """
        if not self.api_key:
            raise ProviderError("GOOGLE_API_KEY is not set")

        params = {"locations": f"{lat:f},{lon:f}", "key": self.api_key}
        try:
            resp = requests.get(self.url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"elevation request failed: {exc}") from exc

        if resp.status_code != 200:
            raise ProviderError(f"elevation request failed with status {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise ProviderError(f"invalid elevation response: {exc}") from exc

        status = body.get("status")
        if status != "OK":
            raise ProviderError(
                f"elevation api error: {status}, message: {body.get('error_message', '')}"
            )

        results = body.get("results") or []
        if not results:
            raise ProviderError("no elevation results")

        try:
            return float(results[0]["elevation"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"malformed elevation result: {exc}") from exc


# ── Cache policy ──────────────────────────────────────────────────────────────

class ElevationCache:
    """Lookup-or-fetch elevation cache."""

    def __init__(
        self,
        store: ElevationStore,
        provider: ElevationProvider,
        default: float = DEFAULT_ELEVATION,
    ) -> None:
        self.store = store
        self.provider = provider
        self.default = default

    def get(self, code: str) -> Union[float, CacheMiss]:
        return self.store.get(code)

    def elevation_for(self, code: str, lat: float, lon: float) -> float:
        """
        Return the cached elevation of ``code``, fetching it on a miss.

        A provider failure yields the default elevation and is not cached,
        so the next request retries the provider.
        """
        cached = self.store.get(code)
        if cached is not CACHE_MISS:
            return cached

        try:
            elevation = self.provider.fetch(lat, lon)
        except ProviderError as exc:
            logger.warning("Failed to fetch elevation for %s: %s", code, exc)
            return self.default

        logger.info("Fetched elevation for %s: %f", code, elevation)
        self.store.insert(code, elevation)
        return elevation
