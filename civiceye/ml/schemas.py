"""Classifier output schema and normalization."""

import logging
import math
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, field_validator

from civiceye.core.constants import CLASSIFIER_RESPONSE_KEYS, ISSUE_TYPES, SEVERITY_LEVELS
from civiceye.crowdsource.models import AnalysisResult, IssueType, Severity

logger = logging.getLogger(__name__)


# Schema sent with the request so the model answers in the expected shape
RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "issue_type": {
            "type": "STRING",
            "enum": list(ISSUE_TYPES),
            "description": "The primary category of the civic issue detected.",
        },
        "severity": {
            "type": "STRING",
            "enum": list(SEVERITY_LEVELS),
            "description": "The severity level based on size, danger, and obstruction.",
        },
        "confidence": {
            "type": "NUMBER",
            "description": "Confidence score between 0 and 1.",
        },
        "description": {
            "type": "STRING",
            "description": "A concise, technical description of the issue (1-2 sentences).",
        },
        "recommended_action": {
            "type": "STRING",
            "description": "Specific action required to fix the issue.",
        },
        "suggested_department": {
            "type": "STRING",
            "description": "The municipal department responsible (e.g., Roads, Sanitation, Traffic).",
        },
        "sla_estimate": {
            "type": "STRING",
            "description": "Recommended Service Level Agreement timeframe (e.g., '24 hours', '3 days').",
        },
        "has_pii": {
            "type": "BOOLEAN",
            "description": "True if human faces or license plates are clearly visible and need blurring.",
        },
    },
    "required": list(CLASSIFIER_RESPONSE_KEYS),
}


def _normalize_token(value: str) -> str:
    return value.strip().upper().replace(" ", "_").replace("-", "_")


class ClassifierOutput(BaseModel):
    """
    Raw classifier answer.

    Unknown issue types become OTHER; unknown severities are rejected;
    confidence is clamped to [0, 1].
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    issue_type: IssueType
    severity: Severity
    confidence: float
    description: str
    recommended_action: str
    suggested_department: str
    sla_estimate: str
    has_pii: bool

    @field_validator("issue_type", mode="before")
    @classmethod
    def _coerce_issue_type(cls, value: Any) -> IssueType:
        if isinstance(value, IssueType):
            return value
        if isinstance(value, str):
            normalized = _normalize_token(value)
            if normalized in IssueType.__members__:
                return IssueType[normalized]
        logger.warning(f"Unrecognized issue type {value!r} coerced to OTHER")
        return IssueType.OTHER

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _normalize_token(value)
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _reject_boolean_confidence(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("confidence must be a number")
        return value

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        if math.isnan(value):
            raise ValueError("confidence must be a number")
        if value < 0.0:
            return 0.0
        if value > 1.0:
            return 1.0
        return value

    def to_analysis(self) -> AnalysisResult:
        return AnalysisResult(
            issue_type=self.issue_type,
            severity=self.severity,
            confidence=self.confidence,
            description=self.description,
            recommended_action=self.recommended_action,
            suggested_department=self.suggested_department,
            sla_estimate=self.sla_estimate,
            has_pii=self.has_pii,
        )
