"""
CivicEye AI - Issue Classification
Multimodal classification of civic issue photos.
"""

from civiceye.ml.schemas import ClassifierOutput, RESPONSE_SCHEMA
from civiceye.ml.issue_classifier import (
    GeminiIssueClassifier,
    IssueClassifier,
    parse_classifier_output,
)

__all__ = [
    "ClassifierOutput",
    "RESPONSE_SCHEMA",
    "GeminiIssueClassifier",
    "IssueClassifier",
    "parse_classifier_output",
]
