"""
CivicEye AI - Exceptions
Domain errors raised by the reporting pipeline and review workflow.
"""


class CivicEyeError(Exception):
    """Base class for all CivicEye errors."""


# Input
class ImageValidationError(CivicEyeError, ValueError):
    """Uploaded file cannot be used as evidence."""


class UnsupportedImageError(ImageValidationError):
    """File is not a supported image format."""


class ImageTooLargeError(ImageValidationError):
    """File exceeds the upload size cap."""


# Location
class LocationError(CivicEyeError):
    """Device location was denied, unavailable or timed out."""


class LocationUnavailableError(CivicEyeError):
    """No location was ever resolved for a submission."""


# External capabilities
class ClassifierError(CivicEyeError):
    """Classification failed; the caller may retry."""


class GeocodeError(CivicEyeError):
    """Reverse geocoding failed."""


class GeminiError(CivicEyeError):
    """Gemini request failed or returned an unusable payload."""


# Submission
class ReportBuildError(CivicEyeError, ValueError):
    """Required input for building a report is missing."""


class StaleResultError(CivicEyeError):
    """A result arrived for an image that has since been replaced or removed."""


class SubmissionNotFoundError(CivicEyeError, KeyError):
    """No open submission with the given id."""


# Review
class ReportNotFoundError(CivicEyeError, KeyError):
    """No report with the given id."""


class InvalidTransitionError(CivicEyeError):
    """Requested status change is not allowed from the current status."""


class ActionInProgressError(CivicEyeError):
    """Another review action is still being processed."""


class NoReportSelectedError(CivicEyeError):
    """A review action was issued without a selected report."""


class ReviewActionError(CivicEyeError):
    """The authority backend did not accept the action after all retries."""
