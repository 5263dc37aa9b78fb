"""
raycast.py — Point-in-polygon algorithm for region boundary testing.

Uses the ray-casting method: cast a horizontal ray from the test point
eastward to infinity, counting boundary crossings. An odd count means the
point is inside the polygon.

Points exactly on a boundary follow PNPOLY's half-open convention: left and
bottom edges count as inside, right and top edges as outside. The result is
deterministic for a given ring.

Reference:
    W. Randolph Franklin, "PNPOLY – Point Inclusion in Polygon Test"
    https://wrfranklin.org/Research/Short_Notes/pnpoly.html
"""

from __future__ import annotations

from typing import Sequence

from shapely.geometry import MultiPolygon, Polygon


def _is_point_in_ring(lon: float, lat: float, ring: Sequence[Sequence[float]]) -> bool:
    """
    Run the ray-casting test for a single linear ring.

    Args:
        lon:  Longitude (x-axis) of the test point.
        lat:  Latitude  (y-axis) of the test point.
        ring: Sequence of (lon, lat[, z]) coordinates forming a closed ring.

    Returns:
        True if the point is inside the ring, False otherwise.
    """
    inside = False
    n = len(ring)

    # Iterate over each edge (ring[i], ring[j])
    j = n - 1
    for i in range(n):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]

        if ((yi > lat) != (yj > lat)) and (lon < (xj - xi) * (lat - yi) / (yj - yi) + xi):
            inside = not inside

        j = i

    return inside


def point_in_polygon(lon: float, lat: float, polygon: Polygon) -> bool:
    """
    Test a point against a single Polygon (exterior ring + optional holes).

    The point must be inside the exterior ring and NOT inside any hole.
    """
    if polygon.is_empty:
        return False

    minx, miny, maxx, maxy = polygon.bounds
    if not (minx <= lon <= maxx and miny <= lat <= maxy):
        return False

    if not _is_point_in_ring(lon, lat, polygon.exterior.coords):
        return False

    for hole in polygon.interiors:
        if _is_point_in_ring(lon, lat, hole.coords):
            return False

    return True


def point_in_multipolygon(lon: float, lat: float, multipolygon: MultiPolygon) -> bool:
    """A point is inside a MultiPolygon if it is inside any of its polygons."""
    return any(point_in_polygon(lon, lat, polygon) for polygon in multipolygon.geoms)
