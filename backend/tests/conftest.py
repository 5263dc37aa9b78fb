"""
conftest.py — Shared pytest fixtures for the Region Reverse Lookup test suite.

Provides:
    - A GeoPackage-shaped SQLite file with a small slice of Jakarta, built in
      tmp_path so tests never touch the real dataset.
    - A fake elevation provider and a DataStore wired to both.

Fixture regions (lon × lat boxes):

    fid 1  IDN.8.1.3_1  meruya        106.75–106.85 × -6.25–-6.15   truncated blob
    fid 2  IDN.8.1.1_1  Kebon Jeruk   106.75–106.85 × -6.25–-6.15   hole 106.76–106.78 × -6.24–-6.22
    fid 3  IDN.8.1.2_1  Cengkareng    106.70–106.75 × -6.25–-6.15   NULL level 4/5 columns
    fid 4  …1.1.1_1     RW 01         106.85–106.90 and 107.00–107.05 × -6.25–-6.15
    fid 5  …1.1.2_1     RW 02         106.90–106.95 × -6.25–-6.15   bare big-endian WKB
    fid 6  IDN.8.3_1    depok         106.70–106.95 × -6.15–-6.05   level-2 row
"""

from __future__ import annotations

import sqlite3
import struct

import pytest
import shapely
from shapely.geometry import MultiPolygon, Polygon, box

from region_lookup.config import Settings
from region_lookup.dataset import RegionDataset
from region_lookup.elevation import ElevationCache, ElevationStore
from region_lookup.loader import DataStore

_ENVELOPE_ELEMENTS = {0: 0, 1: 4, 2: 6, 3: 6, 4: 8}


def gpkg_blob(geom, srid: int = 4326, indicator: int = 1, little_endian: bool = True) -> bytes:
    """Encode a shapely geometry as a GeoPackage geometry blob."""
    order = "<" if little_endian else ">"
    flags = (indicator << 1) | (1 if little_endian else 0)
    header = b"GP" + bytes([0, flags]) + struct.pack(f"{order}i", srid)

    count = _ENVELOPE_ELEMENTS[indicator]
    minx, miny, maxx, maxy = geom.bounds
    envelope = ([minx, maxx, miny, maxy] + [0.0] * (count - 4)) if count else []
    return header + struct.pack(f"{order}{count}d", *envelope) + shapely.to_wkb(geom)


KEBON_JERUK = Polygon(
    box(106.75, -6.25, 106.85, -6.15).exterior.coords,
    [box(106.76, -6.24, 106.78, -6.22).exterior.coords],
)
CENGKARENG = box(106.70, -6.25, 106.75, -6.15)
RW_01 = MultiPolygon([box(106.85, -6.25, 106.90, -6.15), box(107.00, -6.25, 107.05, -6.15)])
RW_02 = box(106.90, -6.25, 106.95, -6.15)
DEPOK = box(106.70, -6.15, 106.95, -6.05)

_JAKARTA_BARAT = ("IDN", "IDN.8_1", "IDN.8.1_1")
_JAKARTA_BARAT_NAMES = ("Indonesia", "Jakarta Raya", "Jakarta Barat")
_GAMBIR = ("IDN", "IDN.8_1", "IDN.8.2_1", "IDN.8.2.1_1", "IDN.8.2.1.1_1")
_GAMBIR_NAMES = ("Indonesia", "Jakarta Raya", "Jakarta Pusat", "Gambir", "Gambir Kelurahan")

# (GID_0..GID_5, NAME_0..NAME_5, geometry blob, rtree box (minx, maxx, miny, maxy))
FIXTURE_ROWS = [
    (
        _JAKARTA_BARAT + ("IDN.8.1.3_1", "", ""),
        _JAKARTA_BARAT_NAMES + ("meruya", "", ""),
        b"GP\x00\x03\xe6\x10\x00\x00" + b"\x00" * 10,
        (106.75, 106.85, -6.25, -6.15),
    ),
    (
        _JAKARTA_BARAT + ("IDN.8.1.1_1", "", ""),
        _JAKARTA_BARAT_NAMES + ("Kebon Jeruk", "", ""),
        gpkg_blob(KEBON_JERUK),
        (106.75, 106.85, -6.25, -6.15),
    ),
    (
        _JAKARTA_BARAT + ("IDN.8.1.2_1", None, None),
        _JAKARTA_BARAT_NAMES + ("Cengkareng", None, None),
        gpkg_blob(CENGKARENG, indicator=0, little_endian=False),
        (106.70, 106.75, -6.25, -6.15),
    ),
    (
        _GAMBIR + ("IDN.8.2.1.1.1_1",),
        _GAMBIR_NAMES + ("RW 01",),
        gpkg_blob(RW_01, indicator=4),
        (106.85, 107.05, -6.25, -6.15),
    ),
    (
        _GAMBIR + ("IDN.8.2.1.1.2_1",),
        _GAMBIR_NAMES + ("RW 02",),
        shapely.to_wkb(RW_02, byte_order=0),
        (106.90, 106.95, -6.25, -6.15),
    ),
    (
        ("IDN", "IDN.8_1", "IDN.8.3_1", "", "", ""),
        ("Indonesia", "Jakarta Raya", "depok", "", "", ""),
        gpkg_blob(DEPOK, indicator=2),
        (106.70, 106.95, -6.15, -6.05),
    ),
]


def build_geopackage(path, rows=FIXTURE_ROWS, table: str = "gadm_410", geom_column: str = "geom"):
    """Write a minimal GADM-style GeoPackage (region table + R-tree table)."""
    gid_cols = ", ".join(f"GID_{i} TEXT" for i in range(6))
    name_cols = ", ".join(f"NAME_{i} TEXT" for i in range(6))
    conn = sqlite3.connect(str(path))
    try:
        conn.execute(
            f"CREATE TABLE {table} (fid INTEGER PRIMARY KEY, {gid_cols}, {name_cols}, {geom_column} BLOB)"
        )
        conn.execute(
            f"CREATE TABLE rtree_{table}_{geom_column} "
            "(id INTEGER PRIMARY KEY, minx REAL, maxx REAL, miny REAL, maxy REAL)"
        )
        for fid, (codes, names, blob, bounds) in enumerate(rows, start=1):
            conn.execute(
                f"INSERT INTO {table} VALUES ({', '.join('?' * 14)})",
                (fid, *codes, *names, blob),
            )
            conn.execute(
                f"INSERT INTO rtree_{table}_{geom_column} VALUES (?, ?, ?, ?, ?)",
                (fid, *bounds),
            )
        conn.commit()
    finally:
        conn.close()
    return path


# ── Elevation provider fake ───────────────────────────────────────────────────

class FakeProvider:
    """Records fetch calls; returns ``elevation`` or raises ``error``."""

    def __init__(self, elevation: float = 12.5, error: Exception | None = None):
        self.elevation = elevation
        self.error = error
        self.calls: list[tuple[float, float]] = []

    def fetch(self, lat: float, lon: float) -> float:
        self.calls.append((lat, lon))
        if self.error is not None:
            raise self.error
        return self.elevation


# ── Dataset fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def gpkg_path(tmp_path):
    return build_geopackage(tmp_path / "gadm_test.gpkg")


@pytest.fixture
def dataset(gpkg_path):
    ds = RegionDataset(gpkg_path)
    yield ds
    ds.close()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def elevation_store(tmp_path) -> ElevationStore:
    return ElevationStore(tmp_path / "cache" / "elevations.db")


@pytest.fixture
def fake_store(gpkg_path, tmp_path, fake_provider, elevation_store) -> DataStore:
    """DataStore over the fixture GeoPackage with a fake elevation provider."""
    settings = Settings(
        gpkg_path=str(gpkg_path),
        elevation_db_path=str(elevation_store.path),
    )
    store = DataStore(
        dataset=RegionDataset(gpkg_path),
        elevations=ElevationCache(elevation_store, fake_provider),
        settings=settings,
    )
    yield store
    store.close()
