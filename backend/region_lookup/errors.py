"""
errors.py — Exception taxonomy for the region lookup core.
"""

from __future__ import annotations


class RegionLookupError(Exception):
    """Base class for every error raised by the lookup core."""


class FormatError(RegionLookupError):
    """Malformed geometry envelope or payload; callers may skip the candidate."""


class NotFoundError(RegionLookupError):
    """No polygon contains the point, or the code is absent at every level."""


class ProviderError(RegionLookupError):
    """The external elevation provider failed or returned no usable result."""


class StoreError(RegionLookupError):
    """The spatial dataset or the elevation store cannot be read or written."""
