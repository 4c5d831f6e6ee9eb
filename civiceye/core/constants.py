"""
CivicEye AI - Constants and Reference Data
Static values used throughout the application.
"""

from typing import Dict, Tuple

# =============================================================================
# ISSUE TAXONOMY
# =============================================================================

ISSUE_TYPES: Tuple[str, ...] = (
    "POTHOLE",
    "GARBAGE_DUMP",
    "ILLEGAL_PARKING",
    "STREETLIGHT_DAMAGE",
    "BROKEN_ROAD",
    "FLOODING",
    "GRAFFITI",
    "OTHER",
)

SEVERITY_LEVELS: Tuple[str, ...] = ("LOW", "MEDIUM", "HIGH", "CRITICAL")

# Keys the classifier must return
CLASSIFIER_RESPONSE_KEYS: Tuple[str, ...] = (
    "issue_type",
    "severity",
    "confidence",
    "description",
    "recommended_action",
    "suggested_department",
    "sla_estimate",
    "has_pii",
)

# =============================================================================
# IMAGES
# =============================================================================

# Pillow format name -> MIME type
SUPPORTED_IMAGE_FORMATS: Dict[str, str] = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
}

# Pillow format name -> evidence file extension
EVIDENCE_EXTENSIONS: Dict[str, str] = {
    "JPEG": "jpg",
    "PNG": "png",
}

# EXIF GPS IFD tag numbers
EXIF_GPS_IFD = 0x8825
GPS_LATITUDE_REF = 1
GPS_LATITUDE = 2
GPS_LONGITUDE_REF = 3
GPS_LONGITUDE = 4

# =============================================================================
# LOCATION
# =============================================================================

GOOGLE_MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query={lat},{lng}"

SOUTHERN_REFS = ("S", "W")

# =============================================================================
# PROMPTS
# =============================================================================

CLASSIFIER_PROMPT = (
    "Analyze this image for civic infrastructure issues.\n"
    "Identify problems such as potholes, garbage dumps, illegal parking, "
    "damaged streetlights, or broken roads.\n"
    "Assess the severity based on potential risk to public safety or traffic flow.\n"
    "{location_context}"
    "Return the result in strict JSON format."
)

GEOCODE_PROMPT = (
    "What is the precise street address or nearest cross-street for this "
    "location? Provide a concise answer."
)
