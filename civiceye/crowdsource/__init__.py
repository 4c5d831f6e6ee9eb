"""
CivicEye AI - Crowdsource Module
Citizen reports: intake, location, submission and authority review.
"""

from civiceye.crowdsource.models import (
    IssueType,
    Severity,
    ReportStatus,
    LocationData,
    EvidenceImage,
    AnalysisResult,
    CivicReport,
)
from civiceye.crowdsource.location_resolver import (
    LocationResolver,
    LocationStatus,
    DevicePosition,
    StaticDeviceLocator,
)
from civiceye.crowdsource.report_builder import build_report
from civiceye.crowdsource.report_store import ReportStore
from civiceye.crowdsource.review import (
    ReviewAction,
    ReviewWorkflow,
    SimulatedAuthorityGateway,
)
from civiceye.crowdsource.export import to_authority_payload

__all__ = [
    # Models
    "IssueType",
    "Severity",
    "ReportStatus",
    "LocationData",
    "EvidenceImage",
    "AnalysisResult",
    "CivicReport",
    # Location
    "LocationResolver",
    "LocationStatus",
    "DevicePosition",
    "StaticDeviceLocator",
    # Reports
    "build_report",
    "ReportStore",
    "to_authority_payload",
    # Review
    "ReviewAction",
    "ReviewWorkflow",
    "SimulatedAuthorityGateway",
]
