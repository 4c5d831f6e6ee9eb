"""
CivicEye AI - Geospatial Utilities
Coordinate conversions and map links.
"""

import math
from typing import Sequence, Union

from civiceye.core.constants import GOOGLE_MAPS_SEARCH_URL, SOUTHERN_REFS


def dms_to_decimal(dms: Sequence[float], ref: Union[str, bytes]) -> float:
    """
    Convert degrees-minutes-seconds to decimal degrees.

    Args:
        dms: (degrees, minutes, seconds); rationals are accepted
        ref: Hemisphere reference (N, S, E, W)

    Returns:
        Decimal degrees, negative for southern or western references

    Raises:
        ValueError: If fewer than three components are given
    """
    if dms is None or len(dms) < 3:
        raise ValueError(f"DMS value needs degrees, minutes and seconds: {dms!r}")

    degrees, minutes, seconds = (float(part) for part in dms[:3])
    decimal = degrees + minutes / 60 + seconds / 3600

    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    if ref.strip().upper() in SOUTHERN_REFS:
        decimal = -decimal

    return decimal


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """Check that a latitude/longitude pair is finite and in range."""
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return False
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def google_maps_search_url(latitude: float, longitude: float) -> str:
    """Deterministic map link for a coordinate pair."""
    return GOOGLE_MAPS_SEARCH_URL.format(lat=latitude, lng=longitude)


def format_coordinates(latitude: float, longitude: float, precision: int = 6) -> str:
    """Format a coordinate pair as 'lat, lon'."""
    return f"{latitude:.{precision}f}, {longitude:.{precision}f}"

