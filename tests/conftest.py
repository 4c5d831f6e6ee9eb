"""
Pytest configuration and fixtures
"""
import io
import pytest
import sys
from pathlib import Path
from typing import Optional

from PIL import Image

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from civiceye.core.config import Settings
from civiceye.crowdsource.models import AnalysisResult, IssueType, Severity
from civiceye.crowdsource.session import AppSession
from civiceye.ingestion.geocoder import GeocodeResult


# Pittsburgh, 40°26'46"N 79°58'56"W
PITTSBURGH_GPS = {
    1: "N",
    2: (40.0, 26.0, 46.0),
    3: "W",
    4: (79.0, 58.0, 56.0),
}


def make_image_bytes(image_format: str = "JPEG", gps: Optional[dict] = None, size=(64, 48)) -> bytes:
    """Encode a small solid image, optionally geotagged."""
    img = Image.new("RGB", size, color=(120, 110, 100))
    buffer = io.BytesIO()

    if gps is not None:
        exif = Image.Exif()
        exif[0x8825] = gps
        img.save(buffer, format=image_format, exif=exif)
    else:
        img.save(buffer, format=image_format)

    return buffer.getvalue()


class FakeClassifier:
    """Classifier returning a canned result."""

    def __init__(self, result: Optional[AnalysisResult] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.gate = None
        self.calls = []

    async def classify(self, image, location_hint=None):
        self.calls.append((image, location_hint))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


class FakeGeocoder:
    """Geocoder returning a canned address."""

    def __init__(self, result: Optional[GeocodeResult] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls = []

    async def reverse(self, latitude, longitude):
        self.calls.append((latitude, longitude))
        if self.error is not None:
            raise self.error
        return self.result


class FakeGateway:
    """Authority backend that fails a set number of times before accepting."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = []

    async def submit(self, report, action):
        self.calls.append((report.id, action))
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("authority backend unreachable")


@pytest.fixture
def jpeg_with_gps():
    """JPEG geotagged in Pittsburgh."""
    return make_image_bytes("JPEG", gps=PITTSBURGH_GPS)


@pytest.fixture
def jpeg_without_gps():
    """JPEG without EXIF metadata."""
    return make_image_bytes("JPEG")


@pytest.fixture
def png_bytes():
    """PNG without metadata."""
    return make_image_bytes("PNG")


@pytest.fixture
def sample_analysis():
    """Classifier output for a pothole."""
    return AnalysisResult(
        issue_type=IssueType.POTHOLE,
        severity=Severity.HIGH,
        confidence=0.92,
        description="Deep pothole in the right lane.",
        recommended_action="Fill and resurface",
        suggested_department="Roads",
        sla_estimate="48 hours",
        has_pii=False,
    )


@pytest.fixture
def geocode_result():
    """Reverse geocoded address."""
    return GeocodeResult(
        address="Forbes Ave & S Craig St, Pittsburgh, PA",
        maps_url="https://maps.google.com/?cid=12345",
    )


@pytest.fixture
def test_settings():
    """Settings with no external services and no delays."""
    return Settings(
        _env_file=None,
        gemini_api_key=None,
        review_action_delay_seconds=0.0,
        review_action_max_retries=3,
        review_action_backoff_seconds=0.0,
        device_location_timeout_seconds=1.0,
    )


@pytest.fixture
def fake_classifier(sample_analysis):
    return FakeClassifier(result=sample_analysis)


@pytest.fixture
def fake_geocoder(geocode_result):
    return FakeGeocoder(result=geocode_result)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def app_session(test_settings, fake_classifier, fake_geocoder, fake_gateway):
    """Logged-in session backed by fakes."""
    session = AppSession(
        settings=test_settings,
        classifier=fake_classifier,
        geocoder=fake_geocoder,
        gateway=fake_gateway,
    )
    session.login("operator")
    return session
