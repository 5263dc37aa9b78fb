"""
gpkg.py — GeoPackage binary header stripping.

A GeoPackage geometry blob is a small header followed by a standard WKB
payload:

    bytes 0-1   magic "GP"
    byte  2     version
    byte  3     flags (bit 0: byte order, bits 1-3: envelope indicator)
    bytes 4-7   spatial reference id
    bytes 8-    optional envelope (0, 4, 6 or 8 doubles), then the WKB

Reference:
    OGC GeoPackage Encoding Standard, §2.1.3 "Geometry Encoding"
"""

from __future__ import annotations

import struct
from typing import Optional

from region_lookup.errors import FormatError

_MAGIC = b"GP"
_HEADER_SIZE = 8

# Envelope indicator → number of 8-byte doubles in the envelope.
_ENVELOPE_ELEMENTS: dict[int, int] = {0: 0, 1: 4, 2: 6, 3: 6, 4: 8}

SRID_MIN = -1
SRID_MAX = 1_000_000


def envelope_element_count(flags: int) -> int:
    """Number of envelope doubles announced by a header flags byte."""
    indicator = (flags >> 1) & 0x07
    return _ENVELOPE_ELEMENTS.get(indicator, 0)


def payload_offset(flags: int) -> int:
    """Byte offset of the WKB payload for a header with the given flags."""
    return _HEADER_SIZE + envelope_element_count(flags) * 8


def strip_envelope(blob: bytes) -> tuple[bytes, Optional[int]]:
    """
    Strip the GeoPackage header from a stored geometry blob.

    Blobs that do not start with the "GP" magic are returned untouched as
    a bare WKB payload with no SRID.

    Args:
        blob: Raw value of the geometry column.

    Returns:
        Tuple of (WKB payload, SRID or None).

    Raises:
        FormatError: If the blob is shorter than a header, or the envelope
            runs past the end of the blob.
    """
    if blob is None or len(blob) < _HEADER_SIZE:
        raise FormatError("geometry blob too short")

    blob = bytes(blob)
    if blob[:2] != _MAGIC:
        return blob, None

    flags = blob[3]

    # The flags byte-order bit is unreliable for the SRID in real files, so
    # both readings are taken and the big-endian one is kept only if plausible.
    (srid_be,) = struct.unpack(">i", blob[4:8])
    (srid_le,) = struct.unpack("<i", blob[4:8])
    if SRID_MIN <= srid_be <= SRID_MAX:
        srid = srid_be
    else:
        srid = srid_le

    offset = payload_offset(flags)
    if len(blob) < offset + 1:
        raise FormatError(
            f"invalid GeoPackage header: payload offset {offset} beyond blob of {len(blob)} bytes"
        )
    return blob[offset:], srid
