"""
Tests for reverse geocoding
"""
import asyncio
import json
import pytest
import httpx

import sys
sys.path.insert(0, '.')

from civiceye.core.exceptions import GeocodeError
from civiceye.ingestion.gemini_client import GeminiClient
from civiceye.ingestion.geocoder import GeminiReverseGeocoder


class TestGeminiReverseGeocoder:
    """Test suite for the Gemini reverse geocoder."""

    def setup_method(self):
        """Setup test fixtures."""
        self.requests = []

    def geocoder(self, response):
        def handler(request):
            self.requests.append(request)
            return response

        client = GeminiClient(api_key="test_api_key", transport=httpx.MockTransport(handler))
        return GeminiReverseGeocoder(client, timeout_seconds=5)

    def test_grounded_maps_link(self):
        """Test the map link comes from grounding metadata when present."""
        geocoder = self.geocoder(httpx.Response(200, json={
            "candidates": [{
                "content": {"parts": [{"text": "Forbes Ave & S Craig St, Pittsburgh, PA"}]},
                "groundingMetadata": {
                    "groundingChunks": [
                        {"web": {"uri": "https://example.com"}},
                        {"maps": {"uri": "https://maps.google.com/?cid=12345", "title": "Forbes Ave"}},
                    ]
                },
            }]
        }))

        result = asyncio.run(geocoder.reverse(40.446111, -79.982222))

        assert result.address == "Forbes Ave & S Craig St, Pittsburgh, PA"
        assert result.maps_url == "https://maps.google.com/?cid=12345"

        body = json.loads(self.requests[0].content)
        assert body["tools"] == [{"googleMaps": {}}]
        assert body["toolConfig"]["retrievalConfig"]["latLng"] == {
            "latitude": 40.446111,
            "longitude": -79.982222,
        }

    def test_fallback_maps_link(self):
        """Test a search URL is used without grounding metadata."""
        geocoder = self.geocoder(httpx.Response(200, json={
            "candidates": [{"content": {"parts": [{"text": "Main St"}]}}]
        }))

        result = asyncio.run(geocoder.reverse(10.5, -20.25))

        assert result.address == "Main St"
        assert result.maps_url == "https://www.google.com/maps/search/?api=1&query=10.5,-20.25"

    def test_http_failure(self):
        geocoder = self.geocoder(httpx.Response(503, text="unavailable"))

        with pytest.raises(GeocodeError):
            asyncio.run(geocoder.reverse(10.5, -20.25))

    def test_empty_answer(self):
        geocoder = self.geocoder(httpx.Response(200, json={"candidates": []}))

        with pytest.raises(GeocodeError):
            asyncio.run(geocoder.reverse(10.5, -20.25))
