"""
Data model for citizen reports
Issue taxonomy, locations, evidence images and the report lifecycle
"""

import base64
import hashlib
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, FrozenSet


class IssueType(str, Enum):
    """Category of a civic issue."""
    POTHOLE = "POTHOLE"
    GARBAGE_DUMP = "GARBAGE_DUMP"
    ILLEGAL_PARKING = "ILLEGAL_PARKING"
    STREETLIGHT_DAMAGE = "STREETLIGHT_DAMAGE"
    BROKEN_ROAD = "BROKEN_ROAD"
    FLOODING = "FLOODING"
    GRAFFITI = "GRAFFITI"
    OTHER = "OTHER"


class Severity(str, Enum):
    """Severity of a civic issue."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ReportStatus(str, Enum):
    """Status of a civic report."""
    PENDING = "PENDING"
    DISPATCHED = "DISPATCHED"
    RESOLVED = "RESOLVED"
    REVIEWED = "REVIEWED"

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS.get(self)

    def can_transition_to(self, target: "ReportStatus") -> bool:
        return target in ALLOWED_TRANSITIONS.get(self, frozenset())


ALLOWED_TRANSITIONS: Dict[ReportStatus, FrozenSet[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({ReportStatus.DISPATCHED, ReportStatus.REVIEWED}),
    ReportStatus.DISPATCHED: frozenset({ReportStatus.RESOLVED}),
    ReportStatus.RESOLVED: frozenset(),
    ReportStatus.REVIEWED: frozenset(),
}


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class LocationData:
    """
    Geographic location of a report.

    Coordinates never change once set; address and map link are added by
    reverse geocoding.
    """
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    address: Optional[str] = None
    maps_url: Optional[str] = None

    def with_address(
        self,
        address: Optional[str],
        maps_url: Optional[str] = None
    ) -> "LocationData":
        """Return a copy enriched with address and map link; existing values are kept."""
        return replace(
            self,
            address=address or self.address,
            maps_url=maps_url or self.maps_url,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "address": self.address,
            "maps_url": self.maps_url,
        }


@dataclass(frozen=True)
class EvidenceImage:
    """Validated photo submitted as evidence."""
    data: bytes = field(repr=False)
    format: str
    mime_type: str
    width: int
    height: int

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.data).hexdigest()

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format,
            "mime_type": self.mime_type,
            "width": self.width,
            "height": self.height,
            "size_bytes": self.size_bytes,
            "sha256": self.sha256,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Validated classifier output."""
    issue_type: IssueType
    severity: Severity
    confidence: float
    description: str
    recommended_action: str
    suggested_department: str
    sla_estimate: str
    has_pii: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issue_type": self.issue_type.value,
            "severity": self.severity.value,
            "confidence": self.confidence,
            "description": self.description,
            "recommended_action": self.recommended_action,
            "suggested_department": self.suggested_department,
            "sla_estimate": self.sla_estimate,
            "has_pii": self.has_pii,
        }


@dataclass(frozen=True)
class CivicReport:
    """
    Civic issue report submitted by a citizen.

    Every field except status is fixed at creation. Status changes go
    through the report store, which swaps in a copy with the new status.
    """
    id: str
    timestamp: datetime
    issue_type: IssueType
    severity: Severity
    confidence: float
    description: str
    recommended_action: str
    suggested_department: str
    sla_estimate: str
    location: LocationData
    image: EvidenceImage = field(repr=False)
    has_pii: bool
    status: ReportStatus = ReportStatus.PENDING

    def with_status(self, status: ReportStatus) -> "CivicReport":
        return replace(self, status=status)

    def to_dict(self, include_image: bool = False) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "id": self.id,
            "timestamp": format_timestamp(self.timestamp),
            "issue_type": self.issue_type.value,
            "severity": self.severity.value,
            "confidence": self.confidence,
            "description": self.description,
            "recommended_action": self.recommended_action,
            "suggested_department": self.suggested_department,
            "sla_estimate": self.sla_estimate,
            "location": self.location.to_dict(),
            "image": self.image.to_dict(),
            "has_pii": self.has_pii,
            "status": self.status.value,
        }
        if include_image:
            data["image_url"] = self.image.to_data_url()
        return data
