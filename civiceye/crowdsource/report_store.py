"""
In-memory report store
Holds submitted reports, most recent first, for the authority dashboard
"""

import logging
from collections import deque
from typing import Optional, List, Dict, Any, Deque

from civiceye.crowdsource.models import (
    CivicReport,
    ReportStatus,
    Severity,
)

logger = logging.getLogger(__name__)


class ReportStore:
    """
    Collection of civic reports for one session.

    The store is the only place where a report's status changes. No
    pagination: the store lives in memory and is bounded by one session.
    """

    def __init__(self):
        self._order: Deque[str] = deque()
        self._reports: Dict[str, CivicReport] = {}

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, report_id: object) -> bool:
        return report_id in self._reports

    def append(self, report: CivicReport) -> CivicReport:
        """Add a report at the front of the list."""
        self._order.appendleft(report.id)
        self._reports[report.id] = report

        logger.info(
            f"Report stored: {report.id} {report.issue_type.value}/{report.severity.value} "
            f"at ({report.location.latitude:.6f}, {report.location.longitude:.6f})"
        )

        return report

    def get(self, report_id: str) -> Optional[CivicReport]:
        """Get report by ID."""
        return self._reports.get(report_id)

    def update_status(
        self,
        report_id: str,
        new_status: ReportStatus
    ) -> Optional[CivicReport]:
        """
        Replace the status of a report, keeping every other field.

        Args:
            report_id: Report ID
            new_status: New status

        Returns:
            Updated report, or None if the ID is unknown
        """
        report = self._reports.get(report_id)
        if report is None:
            logger.warning(f"Status update for unknown report {report_id} ignored")
            return None

        updated = report.with_status(new_status)
        self._reports[report_id] = updated

        logger.info(f"Report {report_id} status: {report.status.value} -> {new_status.value}")

        return updated

    def list(self, status: Optional[ReportStatus] = None) -> List[CivicReport]:
        """Snapshot of reports, most recent first."""
        reports = [self._reports[report_id] for report_id in self._order]
        if status is not None:
            reports = [r for r in reports if r.status == status]
        return reports

    def clear(self) -> None:
        """Drop all reports."""
        self._order.clear()
        self._reports.clear()

    def get_statistics(self) -> Dict[str, Any]:
        """Get report statistics for the dashboard."""
        reports = self.list()
        total = len(reports)

        by_status = {status.value: 0 for status in ReportStatus}
        by_severity = {severity.value: 0 for severity in Severity}
        by_issue_type: Dict[str, int] = {}
        confidence_sum = 0.0

        for report in reports:
            by_status[report.status.value] += 1
            by_severity[report.severity.value] += 1

            issue = report.issue_type.value
            by_issue_type[issue] = by_issue_type.get(issue, 0) + 1

            confidence_sum += report.confidence

        return {
            "total_reports": total,
            "critical_count": by_severity[Severity.CRITICAL.value],
            "pending_count": by_status[ReportStatus.PENDING.value],
            "average_confidence": confidence_sum / total if total > 0 else 0.0,
            "by_status": by_status,
            "by_severity": by_severity,
            "by_issue_type": by_issue_type,
        }
