"""
geometry.py — WKB parsing and planar centroids for region boundaries.

Every boundary is handled as a shapely MultiPolygon downstream; a bare
Polygon payload is wrapped into a one-element MultiPolygon.
"""

from __future__ import annotations

import logging
from typing import Iterable

from shapely import wkb
from shapely.errors import ShapelyError
from shapely.geometry import MultiPolygon, Polygon

from region_lookup.errors import FormatError
from region_lookup.gpkg import strip_envelope

logger = logging.getLogger(__name__)


def parse_multipolygon(payload: bytes) -> MultiPolygon:
    """
    Parse a WKB payload into a MultiPolygon.

    Args:
        payload: WKB bytes (any byte order).

    Returns:
        The parsed MultiPolygon (a Polygon is wrapped).

    Raises:
        FormatError: If the payload is malformed, empty, or not a
            Polygon/MultiPolygon.
    """
    try:
        geom = wkb.loads(bytes(payload))
    except (ShapelyError, ValueError, TypeError) as exc:
        raise FormatError(f"malformed WKB payload: {exc}") from exc

    if not isinstance(geom, (Polygon, MultiPolygon)):
        raise FormatError(f"unsupported geometry: {geom.geom_type}")
    if geom.is_empty:
        raise FormatError("empty geometry")

    if isinstance(geom, Polygon):
        geom = MultiPolygon([geom])
    return geom


def decode_blob(blob: bytes) -> MultiPolygon:
    """Strip the GeoPackage header from a stored blob and parse the payload."""
    payload, _srid = strip_envelope(blob)
    return parse_multipolygon(payload)


def decode_first(blobs: Iterable[bytes]) -> MultiPolygon:
    """
    Decode the first blob that parses; blobs that fail are logged and skipped.

    Raises:
        FormatError: If none of the blobs decode.
    """
    for blob in blobs:
        try:
            return decode_blob(blob)
        except FormatError as exc:
            logger.warning("Skipping undecodable geometry: %s", exc)

    raise FormatError("no decodable geometry")


def centroid(multipolygon: MultiPolygon) -> tuple[float, float]:
    """
    Area-weighted centroid of a MultiPolygon.

    Longitude and latitude are treated as planar x/y, which is close enough
    at regional scale.

    Returns:
        Tuple of (lon, lat).
    """
    if multipolygon.is_empty:
        raise FormatError("cannot take the centroid of an empty geometry")

    point = multipolygon.centroid
    if point.is_empty:
        raise FormatError("degenerate geometry has no centroid")
    return point.x, point.y
