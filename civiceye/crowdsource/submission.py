"""
Citizen report submission

Drives one report draft from photo upload to a stored report: location
resolution, concurrent classification and address lookup, confirmation.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Optional, Dict, Any

from civiceye.core.exceptions import (
    GeocodeError,
    LocationUnavailableError,
    ReportBuildError,
    StaleResultError,
)
from civiceye.core.geo_utils import format_coordinates
from civiceye.crowdsource.location_resolver import LocationResolver, LocationStatus
from civiceye.crowdsource.models import (
    AnalysisResult,
    CivicReport,
    EvidenceImage,
    LocationData,
)
from civiceye.crowdsource.photo_metadata import load_evidence_image
from civiceye.crowdsource.report_builder import build_report
from civiceye.crowdsource.report_store import ReportStore
from civiceye.ingestion.geocoder import GeocodeResult, ReverseGeocoder
from civiceye.ml.issue_classifier import IssueClassifier

logger = logging.getLogger(__name__)


class SubmissionStage(str, Enum):
    """Progress of a report draft."""
    EMPTY = "empty"
    IMAGE_SELECTED = "image_selected"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"


class ReportSubmission:
    """
    One citizen report draft.

    Replacing or removing the photo supersedes any analysis still running
    for the old one; its result is thrown away when it arrives.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        classifier: IssueClassifier,
        geocoder: ReverseGeocoder,
        store: ReportStore,
        max_image_bytes: int = 5 * 1024 * 1024,
        allow_unlocated: bool = False
    ):
        """
        Initialize submission.

        Args:
            resolver: Location resolver for this draft
            classifier: Issue classifier
            geocoder: Reverse geocoder
            store: Store receiving the finished report
            max_image_bytes: Upload size cap
            allow_unlocated: Submit at (0, 0) when no location was resolved
        """
        self.id = str(uuid.uuid4())
        self.resolver = resolver
        self.classifier = classifier
        self.geocoder = geocoder
        self.store = store
        self.max_image_bytes = max_image_bytes
        self.allow_unlocated = allow_unlocated

        self.image: Optional[EvidenceImage] = None
        self.analysis: Optional[AnalysisResult] = None
        self.stage = SubmissionStage.EMPTY

        self._generation = 0

    @property
    def location(self) -> Optional[LocationData]:
        return self.resolver.location

    @property
    def can_submit(self) -> bool:
        return self.stage == SubmissionStage.ANALYZED

    async def start(self) -> None:
        """Form opened: start looking for the device location."""
        await self.resolver.request_device_location()

    async def select_image(self, data: bytes, content_type: Optional[str] = None) -> EvidenceImage:
        """
        Use a new photo for this draft.

        The upload is validated before anything changes. A new photo starts
        a new upload cycle and drops any previous analysis.

        Raises:
            ImageValidationError: Unsupported or oversized file
        """
        image = load_evidence_image(data, self.max_image_bytes, content_type)

        self._generation += 1
        self.image = image
        self.analysis = None
        self.stage = SubmissionStage.IMAGE_SELECTED

        # A photo-derived location belongs to the previous photo only
        if self.resolver.status == LocationStatus.EXTRACTED:
            self.resolver.reset()

        status = await self.resolver.handle_upload(image.data)

        logger.info(
            f"Submission {self.id}: {image.format} {image.width}x{image.height} "
            f"selected, location {status.value}"
        )

        return image

    async def remove_image(self) -> None:
        """Drop the photo and fall back to the device location."""
        self._generation += 1
        self.image = None
        self.analysis = None
        self.stage = SubmissionStage.EMPTY

        self.resolver.reset()
        await self.resolver.request_device_location()

    def abandon(self) -> None:
        """Give up the draft; anything still in flight for it is discarded."""
        self._generation += 1
        self.image = None
        self.analysis = None
        self.stage = SubmissionStage.EMPTY
        self.resolver.reset()

    async def retry_location(self) -> Optional[LocationData]:
        """Retry the device location after an error."""
        return await self.resolver.retry()

    async def analyze(self) -> AnalysisResult:
        """
        Classify the photo and look up the address concurrently.

        Returns:
            Validated analysis

        Raises:
            ReportBuildError: No photo selected
            ClassifierError: Classification failed; the draft can be analyzed again
            StaleResultError: The photo was replaced or the analysis discarded while running
        """
        if self.image is None:
            raise ReportBuildError("Select a photo before analyzing")

        generation = self._generation
        cycle = self.resolver.cycle
        image = self.image
        location = self.resolver.location

        hint = None
        if location is not None:
            hint = f"Coordinates: {format_coordinates(location.latitude, location.longitude)}"

        self.analysis = None
        self.stage = SubmissionStage.ANALYZING

        try:
            analysis, address = await asyncio.gather(
                self.classifier.classify(image, hint),
                self._lookup_address(location),
            )
        except Exception:
            if generation == self._generation:
                self.stage = SubmissionStage.IMAGE_SELECTED
            raise

        if generation != self._generation:
            logger.debug(f"Submission {self.id}: discarding superseded analysis")
            raise StaleResultError("The draft changed while the photo was being analyzed")

        if address is not None:
            self.resolver.enrich(address.address, address.maps_url, cycle=cycle)

        self.analysis = analysis
        self.stage = SubmissionStage.ANALYZED

        return analysis

    def discard_analysis(self) -> None:
        """Throw away the analysis and keep the photo."""
        if self.image is None:
            return
        self._generation += 1
        self.analysis = None
        self.stage = SubmissionStage.IMAGE_SELECTED

    def submit(self) -> CivicReport:
        """
        Confirm the draft and store the report.

        Raises:
            ReportBuildError: No finished analysis for the current photo
            LocationUnavailableError: No location resolved and fallback disabled
        """
        if not self.can_submit or self.image is None or self.analysis is None:
            raise ReportBuildError("Analyze a photo before submitting")

        location = self.resolver.location
        if location is None:
            if not self.allow_unlocated:
                raise LocationUnavailableError(
                    "No location from the photo or the device; retry the device location"
                )
            logger.warning(f"Submission {self.id}: no location resolved, using (0, 0)")
            location = LocationData(latitude=0.0, longitude=0.0)

        report = build_report(self.analysis, location, self.image)
        self.store.append(report)

        self._generation += 1
        self.image = None
        self.analysis = None
        self.stage = SubmissionStage.EMPTY
        self.resolver.reset()

        return report

    async def _lookup_address(self, location: Optional[LocationData]) -> Optional[GeocodeResult]:
        if location is None:
            return None
        try:
            return await self.geocoder.reverse(location.latitude, location.longitude)
        except GeocodeError as e:
            logger.warning(f"Submission {self.id}: address lookup failed, keeping coordinates: {e}")
            return None

    def to_dict(self) -> Dict[str, Any]:
        location = self.resolver.location
        return {
            "id": self.id,
            "stage": self.stage.value,
            "location_status": self.resolver.status.value,
            "location_error": self.resolver.error,
            "location": location.to_dict() if location else None,
            "image": self.image.to_dict() if self.image else None,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "can_submit": self.can_submit,
        }
