"""
Application session
Owns everything one CivicEye session works with, from login to logout
"""

import logging
from typing import Callable, Dict, Optional

from civiceye.core.config import Settings
from civiceye.core.exceptions import SubmissionNotFoundError
from civiceye.crowdsource.location_resolver import (
    DeviceLocator,
    DevicePosition,
    LocationResolver,
    StaticDeviceLocator,
)
from civiceye.crowdsource.report_store import ReportStore
from civiceye.crowdsource.review import (
    AuthorityGateway,
    ReviewWorkflow,
    SimulatedAuthorityGateway,
)
from civiceye.crowdsource.submission import ReportSubmission
from civiceye.ingestion.gemini_client import GeminiClient
from civiceye.ingestion.geocoder import GeminiReverseGeocoder, ReverseGeocoder
from civiceye.ml.issue_classifier import GeminiIssueClassifier, IssueClassifier

logger = logging.getLogger(__name__)

LocatorFactory = Callable[[Optional[DevicePosition]], DeviceLocator]


class AppSession:
    """
    State of one CivicEye session.

    Created at session start and emptied at logout. Components receive it
    (or the parts they need) explicitly.
    """

    def __init__(
        self,
        settings: Settings,
        classifier: IssueClassifier,
        geocoder: ReverseGeocoder,
        gateway: Optional[AuthorityGateway] = None,
        locator_factory: LocatorFactory = StaticDeviceLocator
    ):
        """
        Initialize session.

        Args:
            settings: Application settings
            classifier: Issue classifier
            geocoder: Reverse geocoder
            gateway: Authority backend (default: simulated)
            locator_factory: Builds a device locator from a client-supplied fix
        """
        self.settings = settings
        self.classifier = classifier
        self.geocoder = geocoder
        self.gateway = gateway or SimulatedAuthorityGateway(settings.review_action_delay_seconds)
        self.locator_factory = locator_factory

        self.store = ReportStore()
        self.review = self._new_review()
        self.is_authenticated = False
        self.username: Optional[str] = None

        self._submissions: Dict[str, ReportSubmission] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppSession":
        """Session backed by Gemini for classification and geocoding."""
        client = GeminiClient.from_settings(settings)
        if not client.is_configured:
            logger.warning("GEMINI_API_KEY not configured; analysis requests will fail")

        return cls(
            settings=settings,
            classifier=GeminiIssueClassifier(
                client,
                timeout_seconds=settings.classifier_timeout_seconds,
                temperature=settings.gemini_temperature,
            ),
            geocoder=GeminiReverseGeocoder(
                client,
                timeout_seconds=settings.geocode_timeout_seconds,
            ),
        )

    def login(self, username: Optional[str] = None) -> None:
        """Simulated login; any credentials are accepted."""
        self.is_authenticated = True
        self.username = username
        logger.info(f"Session started for {username or 'anonymous user'}")

    def logout(self) -> None:
        """End the session and drop all session data."""
        for submission in self._submissions.values():
            submission.abandon()
        self._submissions.clear()
        self.store.clear()
        self.review = self._new_review()
        self.is_authenticated = False
        self.username = None
        logger.info("Session ended; reports cleared")

    async def open_submission(self, position: Optional[DevicePosition] = None) -> ReportSubmission:
        """Start a new report draft and begin locating the device."""
        resolver = LocationResolver(
            self.locator_factory(position),
            timeout_seconds=self.settings.device_location_timeout_seconds,
            exif_accuracy_m=self.settings.exif_location_accuracy_m,
        )
        submission = ReportSubmission(
            resolver=resolver,
            classifier=self.classifier,
            geocoder=self.geocoder,
            store=self.store,
            max_image_bytes=self.settings.max_image_bytes,
            allow_unlocated=self.settings.allow_unlocated_reports,
        )
        self._submissions[submission.id] = submission

        await submission.start()
        return submission

    def get_submission(self, submission_id: str) -> ReportSubmission:
        submission = self._submissions.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(f"Submission not found: {submission_id}")
        return submission

    def close_submission(self, submission_id: str) -> None:
        """Forget a draft; results still in flight for it are dropped."""
        submission = self._submissions.pop(submission_id, None)
        if submission is not None:
            submission.abandon()

    async def update_device_position(
        self,
        submission_id: str,
        position: Optional[DevicePosition]
    ) -> ReportSubmission:
        """Hand a fresh device fix to a draft and resolve again."""
        submission = self.get_submission(submission_id)
        submission.resolver.locator = self.locator_factory(position)
        await submission.resolver.request_device_location()
        return submission

    def _new_review(self) -> ReviewWorkflow:
        return ReviewWorkflow(
            self.store,
            self.gateway,
            max_retries=self.settings.review_action_max_retries,
            backoff_seconds=self.settings.review_action_backoff_seconds,
        )
