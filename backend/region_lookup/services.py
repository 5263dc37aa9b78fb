"""
services.py — Query logic for the region lookup service.

Responsibilities:
    - Reverse lookup: rounding the query point, prefiltering candidates via
      the R-tree, and resolving the containing region's hierarchy chain.
    - Listing the direct children of a region.
    - Describing a region: centroid and cached elevation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from region_lookup.containment import resolve_containing
from region_lookup.errors import NotFoundError
from region_lookup.geometry import centroid, decode_first
from region_lookup.hierarchy import AdminChain, HierarchyNode
from region_lookup.loader import DataStore

logger = logging.getLogger(__name__)

# Rows read for a node's geometry; later rows only stand in for broken blobs.
GEOMETRY_ROW_LIMIT = 3


@dataclass(frozen=True)
class NodeInfo:
    node:      HierarchyNode
    latitude:  float
    longitude: float
    elevation: float

    def to_dict(self) -> dict:
        return {
            "code": self.node.code,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "name": self.node.name,
            "parentCode": self.node.parent_code or "",
            "level": self.node.level.label,
            "elevation": self.elevation,
        }


def round_coordinate(value: float, places: int) -> float:
    """
    Round half away from zero to ``places`` decimals.

    Rounding an already rounded value returns it unchanged.
    """
    factor = 10 ** places
    scaled = abs(value * factor)
    whole = math.floor(scaled)
    if scaled - whole >= 0.5:
        whole += 1
    return math.copysign(whole, value) / factor


# ── Public API ────────────────────────────────────────────────────────────────

def reverse_lookup(lat: float, lon: float, store: DataStore) -> AdminChain:
    """
    Find the administrative regions containing a geographic coordinate.

    Steps:
        1. Round (lat, lon) to the configured number of places.
        2. Fetch R-tree candidates whose bounding box holds the point.
        3. Ray-cast each candidate's boundary; first containing one wins.
        4. Build the hierarchy chain from the matched row.

    Args:
        lat:   Latitude  of the query point, in [-90, 90].
        lon:   Longitude of the query point, in [-180, 180].
        store: Opened DataStore.

    Raises:
        NotFoundError: If no region boundary contains the point.
    """
    places = store.settings.round_places
    rlat = round_coordinate(lat, places)
    rlon = round_coordinate(lon, places)

    candidates = store.dataset.candidates(rlon, rlat)
    row = resolve_containing(candidates, rlon, rlat)
    return row.chain()


def children_of(code: str, store: DataStore) -> list[HierarchyNode]:
    """
    List the direct children of a region, sorted by name.

    Raises:
        NotFoundError: If the code is not present at any level.
    """
    return store.hierarchy.children_of(code)


def node_info(code: str, store: DataStore) -> NodeInfo:
    """
    Describe a region: name, parent, level, centroid and elevation.

    The centroid is taken from the first decodable geometry among the first
    GEOMETRY_ROW_LIMIT rows carrying the code; for a non-leaf code that is a
    single member unit.

    Raises:
        NotFoundError: If the code is not present at any level.
        FormatError:   If none of the region's geometries can be decoded.
    """
    code = (code or "").strip()
    level = store.hierarchy.detect_level(code)

    rows = store.dataset.node_rows(level, code, limit=GEOMETRY_ROW_LIMIT)
    if not rows:
        raise NotFoundError(f"code {code!r} not found")

    name, parent_code, _ = rows[0]
    node = HierarchyNode(code, name or "", level, parent_code or None)

    lon, lat = centroid(decode_first(blob for _, _, blob in rows))
    elevation = store.elevations.elevation_for(code, lat, lon)

    return NodeInfo(node=node, latitude=lat, longitude=lon, elevation=elevation)
