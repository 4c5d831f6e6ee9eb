"""
CivicEye AI - External Service Clients
Clients for the Gemini API and reverse geocoding.
"""

from civiceye.ingestion.gemini_client import GeminiClient, extract_json_object, extract_text
from civiceye.ingestion.geocoder import GeocodeResult, GeminiReverseGeocoder, ReverseGeocoder

__all__ = [
    # Gemini
    "GeminiClient",
    "extract_json_object",
    "extract_text",
    # Geocoding
    "GeocodeResult",
    "GeminiReverseGeocoder",
    "ReverseGeocoder",
]
