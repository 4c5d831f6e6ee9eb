"""
Gemini REST client for CivicEye AI

Thin async wrapper over the generateContent endpoint used for issue
classification and reverse geocoding.

API Documentation: https://ai.google.dev/api/generate-content
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from civiceye.core.config import Settings
from civiceye.core.exceptions import GeminiError

logger = logging.getLogger(__name__)


def extract_text(payload: Dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate."""
    candidates = payload.get("candidates") or []
    if not candidates:
        raise GeminiError("Gemini response missing candidates")

    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    texts: List[str] = []
    for part in parts:
        text = part.get("text")
        if isinstance(text, str) and text.strip():
            texts.append(text)
    if not texts:
        raise GeminiError("Gemini response missing text parts")
    return "\n".join(texts).strip()


def _strip_code_fences(text: str) -> str:
    value = text.strip()
    if value.startswith("```"):
        lines = value.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].startswith("```"):
            lines = lines[:-1]
        value = "\n".join(lines).strip()
    return value


def extract_json_object(text: str) -> Dict[str, Any]:
    """Parse a JSON object out of model text, tolerating fences and chatter."""
    candidate = _strip_code_fences(text)
    try:
        parsed = json.loads(candidate)
    except ValueError:
        start = candidate.find("{")
        end = candidate.rfind("}")
        if start < 0 or end <= start:
            raise GeminiError("Could not extract valid JSON from model output")
        try:
            parsed = json.loads(candidate[start:end + 1])
        except ValueError as e:
            raise GeminiError(f"Could not extract valid JSON from model output: {e}") from e

    if not isinstance(parsed, dict):
        raise GeminiError("Model output is not a JSON object")
    return parsed


def extract_maps_uri(payload: Dict[str, Any]) -> Optional[str]:
    """First Google Maps URI found in the grounding metadata, if any."""
    candidates = payload.get("candidates") or []
    if not candidates:
        return None

    metadata = candidates[0].get("groundingMetadata") or {}
    for chunk in metadata.get("groundingChunks") or []:
        maps = chunk.get("maps") or {}
        uri = maps.get("uri")
        if isinstance(uri, str) and uri:
            return uri
    return None


class GeminiClient:
    """
    Async client for Gemini generateContent.

    Usage:
        client = GeminiClient(api_key="your_key")
        payload = await client.generate_content(body, timeout=30)
    """

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(
        self,
        api_key: Optional[str],
        model_id: str = DEFAULT_MODEL,
        base_url: str = BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Google AI API key
            model_id: Model used for every request
            base_url: API root
            transport: Custom httpx transport (tests)
        """
        self.api_key = api_key
        self.model_id = model_id
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiClient":
        return cls(
            api_key=settings.gemini_api_key,
            model_id=settings.gemini_model_id,
            base_url=settings.gemini_api_base_url,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model_id}:generateContent"

    async def generate_content(self, body: Dict[str, Any], timeout: float = 30.0) -> Dict[str, Any]:
        """
        Call generateContent and return the decoded response.

        Raises:
            GeminiError: Missing key, timeout, HTTP error or undecodable body
        """
        if not self.is_configured:
            raise GeminiError("GEMINI_API_KEY not configured. Set environment variable.")

        headers = {"x-goog-api-key": self.api_key}
        start = time.time()

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint, headers=headers, json=body)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as e:
            raise GeminiError(f"Gemini request timed out after {timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise GeminiError(
                f"Gemini returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise GeminiError(f"Gemini request failed: {e}") from e
        except ValueError as e:
            raise GeminiError(f"Gemini returned invalid JSON: {e}") from e

        latency_ms = int((time.time() - start) * 1000)
        logger.debug(f"Gemini {self.model_id} responded in {latency_ms}ms")

        if not isinstance(payload, dict):
            raise GeminiError("Gemini response is not a JSON object")
        return payload
