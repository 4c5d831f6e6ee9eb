"""
Authority export
Serializes reports into the JSON shape consumed by municipal systems
"""

import json
from typing import Dict, Any

from civiceye.core.constants import EVIDENCE_EXTENSIONS
from civiceye.crowdsource.models import CivicReport, format_timestamp


def evidence_url(report: CivicReport, base_url: str) -> str:
    """Public URL of the report's evidence photo."""
    extension = EVIDENCE_EXTENSIONS.get(report.image.format, "jpg")
    return f"{base_url.rstrip('/')}/{report.id}.{extension}"


def to_authority_payload(report: CivicReport, evidence_base_url: str) -> Dict[str, Any]:
    """
    Build the authority payload for a report.

    Field names and casing are fixed by downstream consumers.
    """
    return {
        "id": report.id,
        "issue_type": report.issue_type.value,
        "confidence": report.confidence,
        "severity": report.severity.value.lower(),
        "location": {
            "lat": report.location.latitude,
            "lon": report.location.longitude,
            "address": report.location.address,
        },
        "timestamp": format_timestamp(report.timestamp),
        "evidence": [evidence_url(report, evidence_base_url)],
        "notes": f"Suggested action: {report.recommended_action}. SLA: {report.sla_estimate}",
    }


def to_authority_json(report: CivicReport, evidence_base_url: str, indent: int = 2) -> str:
    """Authority payload as a JSON document."""
    return json.dumps(to_authority_payload(report, evidence_base_url), indent=indent)
