"""
containment.py — Exact point-in-polygon test over prefiltered candidates.
"""

from __future__ import annotations

import logging
from typing import Iterable

from region_lookup.dataset import RegionRow
from region_lookup.errors import FormatError, NotFoundError
from region_lookup.geometry import decode_blob
from region_lookup.raycast import point_in_multipolygon

logger = logging.getLogger(__name__)


def resolve_containing(candidates: Iterable[RegionRow], lon: float, lat: float) -> RegionRow:
    """
    Return the first candidate whose boundary contains (lon, lat).

    Candidates are tested in the order given; where source polygons overlap,
    the first one scanned wins. A candidate whose geometry cannot be decoded
    is logged and skipped.

    Raises:
        NotFoundError: If no candidate contains the point.
    """
    for row in candidates:
        try:
            shape = decode_blob(row.geometry)
        except FormatError as exc:
            logger.warning("Skipping malformed region %r: %s", row.code, exc)
            continue

        if point_in_multipolygon(lon, lat, shape):
            logger.debug("Matched region: %r", row.code)
            return row

    raise NotFoundError(f"no region contains ({lat}, {lon})")
