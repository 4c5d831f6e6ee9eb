"""
Report construction
Merges classifier output, resolved location and evidence into a CivicReport
"""

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional

from civiceye.core.exceptions import ReportBuildError
from civiceye.crowdsource.models import (
    AnalysisResult,
    CivicReport,
    EvidenceImage,
    LocationData,
    ReportStatus,
)


def _new_report_id() -> str:
    return str(uuid.uuid4())


def build_report(
    analysis: Optional[AnalysisResult],
    location: Optional[LocationData],
    image: Optional[EvidenceImage],
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = _new_report_id
) -> CivicReport:
    """
    Build a new report in PENDING status.

    The report gets a fresh id and a UTC creation timestamp and holds its
    own copy of the location.

    Args:
        analysis: Validated classifier output
        location: Resolved location
        image: Evidence photo
        now: Creation time (default: current UTC time)
        id_factory: Identifier generator

    Returns:
        New CivicReport

    Raises:
        ReportBuildError: If analysis, location or image is missing
    """
    if analysis is None:
        raise ReportBuildError("Cannot build a report without an analysis result")
    if image is None:
        raise ReportBuildError("Cannot build a report without an evidence image")
    if location is None:
        raise ReportBuildError("Cannot build a report without a location")

    timestamp = now or datetime.now(timezone.utc)

    return CivicReport(
        id=id_factory(),
        timestamp=timestamp,
        issue_type=analysis.issue_type,
        severity=analysis.severity,
        confidence=analysis.confidence,
        description=analysis.description,
        recommended_action=analysis.recommended_action,
        suggested_department=analysis.suggested_department,
        sla_estimate=analysis.sla_estimate,
        location=replace(location),
        image=image,
        has_pii=analysis.has_pii,
        status=ReportStatus.PENDING,
    )
