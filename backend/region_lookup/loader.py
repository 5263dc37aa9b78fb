"""
loader.py — Startup wiring for the region lookup service.

Responsible for:
    - Opening the read-only GeoPackage dataset.
    - Opening (and creating if needed) the elevation cache store.
    - Exposing a unified DataStore dataclass used throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from region_lookup.config import Settings
from region_lookup.dataset import RegionDataset
from region_lookup.elevation import ElevationCache, ElevationStore, GoogleElevationProvider
from region_lookup.hierarchy import HierarchyResolver

logger = logging.getLogger(__name__)


# ── DataStore ────────────────────────────────────────────────────────────────
@dataclass
class DataStore:
    """
    Holds everything a lookup needs.

    Attributes:
        dataset:    Read-only GeoPackage region table.
        elevations: Elevation lookup-or-fetch cache.
        settings:   The settings the store was opened with.
        hierarchy:  Level detection and child enumeration over ``dataset``.
    """
    dataset:    RegionDataset
    elevations: ElevationCache
    settings:   Settings = field(default_factory=Settings)
    hierarchy:  HierarchyResolver = field(init=False)

    def __post_init__(self) -> None:
        self.hierarchy = HierarchyResolver(self.dataset)

    def close(self) -> None:
        self.dataset.close()


def load_all_data(settings: Optional[Settings] = None) -> DataStore:
    """
    Open the dataset and elevation cache and return a DataStore.

    This should be called exactly once at application startup.

    Raises:
        StoreError: If the GeoPackage or the elevation store cannot be opened.
    """
    settings = settings or Settings.from_env()

    dataset = RegionDataset(
        settings.gpkg_path,
        table=settings.table,
        geom_column=settings.geom_column,
        candidate_limit=settings.candidate_limit,
    )
    store = ElevationStore(settings.elevation_db_path)
    provider = GoogleElevationProvider(settings.google_api_key, timeout=settings.elevation_timeout)
    if not settings.google_api_key:
        logger.warning("GOOGLE_API_KEY is not set; uncached elevations will default to 0.0")

    return DataStore(
        dataset=dataset,
        elevations=ElevationCache(store, provider),
        settings=settings,
    )
