"""
Reverse geocoding through Gemini with Google Maps grounding
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from civiceye.core.constants import GEOCODE_PROMPT
from civiceye.core.exceptions import GeminiError, GeocodeError
from civiceye.core.geo_utils import google_maps_search_url
from civiceye.ingestion.gemini_client import GeminiClient, extract_maps_uri, extract_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeocodeResult:
    """Human-readable address for a coordinate pair."""
    address: str
    maps_url: Optional[str] = None


@runtime_checkable
class ReverseGeocoder(Protocol):
    """Coordinates to address."""

    async def reverse(self, latitude: float, longitude: float) -> GeocodeResult:
        ...


class GeminiReverseGeocoder:
    """Asks Gemini for the street address at a coordinate pair."""

    def __init__(self, client: GeminiClient, timeout_seconds: float = 15.0):
        self.client = client
        self.timeout_seconds = timeout_seconds

    def build_request(self, latitude: float, longitude: float) -> Dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": GEOCODE_PROMPT}]}],
            "tools": [{"googleMaps": {}}],
            "toolConfig": {
                "retrievalConfig": {
                    "latLng": {"latitude": latitude, "longitude": longitude}
                }
            },
        }

    async def reverse(self, latitude: float, longitude: float) -> GeocodeResult:
        """
        Look up the address for a location.

        The map link comes from the grounding metadata when Gemini provides
        one, otherwise from a plain Google Maps search URL.

        Raises:
            GeocodeError: Lookup failed or returned no address
        """
        try:
            payload = await self.client.generate_content(
                self.build_request(latitude, longitude),
                timeout=self.timeout_seconds,
            )
            address = extract_text(payload)
        except GeminiError as e:
            raise GeocodeError(f"Address lookup failed: {e}") from e

        maps_url = extract_maps_uri(payload) or google_maps_search_url(latitude, longitude)

        logger.info(f"Address resolved for ({latitude:.6f}, {longitude:.6f}): {address}")

        return GeocodeResult(address=address, maps_url=maps_url)
