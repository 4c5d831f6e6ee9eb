"""
Issue classification for citizen photos
Sends the photo to Gemini and validates the structured answer
"""

import logging
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from pydantic import ValidationError

from civiceye.core.constants import CLASSIFIER_PROMPT
from civiceye.core.exceptions import ClassifierError, GeminiError
from civiceye.crowdsource.models import AnalysisResult, EvidenceImage
from civiceye.ingestion.gemini_client import GeminiClient, extract_json_object, extract_text
from civiceye.ml.schemas import RESPONSE_SCHEMA, ClassifierOutput

logger = logging.getLogger(__name__)


@runtime_checkable
class IssueClassifier(Protocol):
    """Image to structured classification."""

    async def classify(
        self,
        image: EvidenceImage,
        location_hint: Optional[str] = None
    ) -> AnalysisResult:
        ...


def parse_classifier_output(raw: Dict[str, Any]) -> AnalysisResult:
    """
    Validate a raw classifier object.

    Raises:
        ClassifierError: If required keys are missing or values are invalid
    """
    try:
        return ClassifierOutput.model_validate(raw).to_analysis()
    except ValidationError as e:
        raise ClassifierError(f"Classifier returned an invalid result: {e}") from e


class GeminiIssueClassifier:
    """
    Classifies civic issues with a multimodal Gemini model.

    The model is asked for JSON matching RESPONSE_SCHEMA; the answer is
    validated before use.
    """

    def __init__(
        self,
        client: GeminiClient,
        timeout_seconds: float = 30.0,
        temperature: float = 0.2
    ):
        """
        Initialize classifier.

        Args:
            client: Gemini REST client
            timeout_seconds: Request timeout
            temperature: Sampling temperature; low keeps labels consistent
        """
        self.client = client
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature

    def build_prompt(self, location_hint: Optional[str] = None) -> str:
        context = f"Location Context: {location_hint}\n" if location_hint else ""
        return CLASSIFIER_PROMPT.format(location_context=context)

    def build_request(
        self,
        image: EvidenceImage,
        location_hint: Optional[str] = None
    ) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {
                            "inlineData": {
                                "mimeType": image.mime_type,
                                "data": image.to_base64(),
                            }
                        },
                        {"text": self.build_prompt(location_hint)},
                    ],
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
                "temperature": self.temperature,
            },
        }

    async def classify(
        self,
        image: EvidenceImage,
        location_hint: Optional[str] = None
    ) -> AnalysisResult:
        """
        Classify the issue shown in a photo.

        Args:
            image: Evidence photo
            location_hint: Free-text location context

        Returns:
            Validated AnalysisResult

        Raises:
            ClassifierError: Request failed or the answer did not validate
        """
        try:
            payload = await self.client.generate_content(
                self.build_request(image, location_hint),
                timeout=self.timeout_seconds,
            )
            raw = extract_json_object(extract_text(payload))
        except GeminiError as e:
            logger.error(f"Issue classification failed: {e}")
            raise ClassifierError(f"Issue classification failed: {e}") from e

        result = parse_classifier_output(raw)

        logger.info(
            f"Issue classified: {result.issue_type.value} "
            f"severity={result.severity.value} confidence={result.confidence:.2f}"
        )

        return result
