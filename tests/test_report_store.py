"""
Tests for the in-memory report store
"""
import pytest

import sys
sys.path.insert(0, '.')

from civiceye.crowdsource.models import (
    AnalysisResult,
    IssueType,
    LocationData,
    ReportStatus,
    Severity,
)
from civiceye.crowdsource.photo_metadata import load_evidence_image
from civiceye.crowdsource.report_builder import build_report
from civiceye.crowdsource.report_store import ReportStore


def make_report(image, issue_type=IssueType.POTHOLE, severity=Severity.HIGH, confidence=0.9):
    analysis = AnalysisResult(
        issue_type=issue_type,
        severity=severity,
        confidence=confidence,
        description="Test issue",
        recommended_action="Fix it",
        suggested_department="Public Works",
        sla_estimate="3 days",
        has_pii=False,
    )
    return build_report(analysis, LocationData(latitude=10.0, longitude=20.0), image)


class TestReportStore:
    """Test suite for ReportStore."""

    @pytest.fixture(autouse=True)
    def _store(self, jpeg_without_gps):
        self.image = load_evidence_image(jpeg_without_gps, max_bytes=1024 * 1024)
        self.store = ReportStore()

    def test_newest_first(self):
        """Test appended reports are listed newest first."""
        first = self.store.append(make_report(self.image))
        second = self.store.append(make_report(self.image))

        assert [r.id for r in self.store.list()] == [second.id, first.id]
        assert len(self.store) == 2
        assert first.id in self.store

    def test_get_unknown_id(self):
        assert self.store.get("missing") is None

    def test_update_status(self):
        report = self.store.append(make_report(self.image))

        updated = self.store.update_status(report.id, ReportStatus.DISPATCHED)

        assert updated.status == ReportStatus.DISPATCHED
        assert self.store.get(report.id).status == ReportStatus.DISPATCHED
        assert updated.description == report.description

    def test_update_status_keeps_position(self):
        older = self.store.append(make_report(self.image))
        newer = self.store.append(make_report(self.image))

        self.store.update_status(older.id, ReportStatus.REVIEWED)

        assert [r.id for r in self.store.list()] == [newer.id, older.id]

    def test_update_unknown_id_is_noop(self):
        """Test an unknown id changes nothing and raises nothing."""
        report = self.store.append(make_report(self.image))
        before = [r.to_dict() for r in self.store.list()]

        result = self.store.update_status("missing", ReportStatus.RESOLVED)

        assert result is None
        assert [r.to_dict() for r in self.store.list()] == before
        assert self.store.get(report.id).status == ReportStatus.PENDING

    def test_filter_by_status(self):
        pending = self.store.append(make_report(self.image))
        dispatched = self.store.append(make_report(self.image))
        self.store.update_status(dispatched.id, ReportStatus.DISPATCHED)

        assert [r.id for r in self.store.list(ReportStatus.PENDING)] == [pending.id]
        assert [r.id for r in self.store.list(ReportStatus.DISPATCHED)] == [dispatched.id]

    def test_clear(self):
        self.store.append(make_report(self.image))
        self.store.clear()
        assert len(self.store) == 0
        assert self.store.list() == []

    def test_statistics_empty(self):
        """Test average confidence over zero reports is zero."""
        stats = self.store.get_statistics()

        assert stats["total_reports"] == 0
        assert stats["average_confidence"] == 0.0
        assert stats["critical_count"] == 0
        assert stats["by_status"] == {"PENDING": 0, "DISPATCHED": 0, "RESOLVED": 0, "REVIEWED": 0}

    def test_statistics(self):
        self.store.append(make_report(self.image, severity=Severity.CRITICAL, confidence=0.8))
        self.store.append(make_report(self.image, issue_type=IssueType.FLOODING, confidence=0.6))
        dispatched = self.store.append(make_report(self.image, severity=Severity.LOW, confidence=1.0))
        self.store.update_status(dispatched.id, ReportStatus.DISPATCHED)

        stats = self.store.get_statistics()

        assert stats["total_reports"] == 3
        assert stats["critical_count"] == 1
        assert stats["pending_count"] == 2
        assert stats["average_confidence"] == pytest.approx(0.8)
        assert stats["by_severity"]["HIGH"] == 1
        assert stats["by_status"]["DISPATCHED"] == 1
        assert stats["by_issue_type"] == {"POTHOLE": 2, "FLOODING": 1}
