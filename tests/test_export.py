"""
Tests for the authority export format
"""
import json
from datetime import datetime, timezone

import sys
sys.path.insert(0, '.')

from civiceye.crowdsource.export import evidence_url, to_authority_json, to_authority_payload
from civiceye.crowdsource.models import LocationData
from civiceye.crowdsource.photo_metadata import load_evidence_image
from civiceye.crowdsource.report_builder import build_report

BASE_URL = "https://storage.googleapis.com/civic-eye/evidence"


class TestAuthorityExport:
    """Test suite for authority payloads."""

    def build(self, analysis, image_bytes):
        image = load_evidence_image(image_bytes, max_bytes=1024 * 1024)
        location = LocationData(
            latitude=40.446111,
            longitude=-79.982222,
            address="Forbes Ave & S Craig St, Pittsburgh, PA",
        )
        return build_report(
            analysis,
            location,
            image,
            now=datetime(2025, 3, 14, 9, 26, 53, 589000, tzinfo=timezone.utc),
            id_factory=lambda: "abc-123",
        )

    def test_payload_shape(self, sample_analysis, jpeg_without_gps):
        """Test field names, casing and values."""
        report = self.build(sample_analysis, jpeg_without_gps)

        payload = to_authority_payload(report, BASE_URL)

        assert payload == {
            "id": "abc-123",
            "issue_type": "POTHOLE",
            "confidence": 0.92,
            "severity": "high",
            "location": {
                "lat": 40.446111,
                "lon": -79.982222,
                "address": "Forbes Ave & S Craig St, Pittsburgh, PA",
            },
            "timestamp": "2025-03-14T09:26:53.589Z",
            "evidence": [f"{BASE_URL}/abc-123.jpg"],
            "notes": "Suggested action: Fill and resurface. SLA: 48 hours",
        }

    def test_png_evidence_extension(self, sample_analysis, png_bytes):
        report = self.build(sample_analysis, png_bytes)
        assert evidence_url(report, BASE_URL + "/") == f"{BASE_URL}/abc-123.png"

    def test_json_document(self, sample_analysis, jpeg_without_gps):
        report = self.build(sample_analysis, jpeg_without_gps)

        document = json.loads(to_authority_json(report, BASE_URL))

        assert document["id"] == "abc-123"
        assert document["location"]["lat"] == 40.446111
