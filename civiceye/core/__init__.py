"""
CivicEye AI - Core Utilities
Central configuration, logging, and utility functions.
"""

from civiceye.core.config import settings
from civiceye.core.constants import (
    ISSUE_TYPES,
    SEVERITY_LEVELS,
    SUPPORTED_IMAGE_FORMATS,
)
from civiceye.core.geo_utils import (
    dms_to_decimal,
    is_valid_coordinate,
    google_maps_search_url,
    format_coordinates,
)

__all__ = [
    "settings",
    "ISSUE_TYPES",
    "SEVERITY_LEVELS",
    "SUPPORTED_IMAGE_FORMATS",
    "dms_to_decimal",
    "is_valid_coordinate",
    "google_maps_search_url",
    "format_coordinates",
]
