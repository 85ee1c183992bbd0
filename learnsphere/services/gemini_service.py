"""
Gemini AI service: one blocking request/response call per prompt
"""
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from learnsphere.config import settings
from learnsphere.exceptions import ExternalServiceError, GenerationFailedError
import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Configure Gemini API
genai.configure(api_key=settings.GEMINI_API_KEY)

FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_json_response(response_text: str, expected: Optional[type] = None) -> Any:
    """
    Parse a model response as JSON

    Args:
        response_text: Raw model output, possibly wrapped in markdown fences
        expected: list or dict to require a JSON array / object

    Returns:
        Parsed JSON value

    Raises:
        GenerationFailedError: response is not parseable JSON of the expected kind
    """
    cleaned = FENCE_PATTERN.sub("", (response_text or "").strip()).strip()

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        # Models sometimes add a sentence before or after the payload
        parsed = None
        for opener, closer in (("[", "]"), ("{", "}")):
            if expected is dict and opener == "[":
                continue
            start, end = cleaned.find(opener), cleaned.rfind(closer)
            if start == -1 or end <= start:
                continue
            try:
                parsed = json.loads(cleaned[start:end + 1])
                break
            except json.JSONDecodeError:
                continue
        if parsed is None:
            logger.error(f"Failed to parse model JSON. Response text: {cleaned[:500]}")
            raise GenerationFailedError(
                "The AI returned a response that could not be read. Please try again."
            )

    if expected is not None and not isinstance(parsed, expected):
        logger.error(f"Expected JSON {expected.__name__}, got {type(parsed).__name__}")
        raise GenerationFailedError(
            "The AI returned content in an unexpected format. Please try again."
        )

    return parsed


class GeminiService:
    """Service for all Gemini AI calls"""

    def __init__(self, model_name: Optional[str] = None):
        self.model_name = model_name or settings.GEMINI_MODEL
        self.model = genai.GenerativeModel(self.model_name)

    def generate_text(self, prompt: str) -> str:
        """
        Send a prompt and return the response text

        Raises:
            ExternalServiceError: the call failed (quota, key, network)
            GenerationFailedError: the model returned nothing usable
        """
        try:
            response = self.model.generate_content(prompt)
            text = response.text
        except Exception as e:
            logger.error(f"Gemini request failed ({self.model_name}): {str(e)}")
            raise self._translate_error(e) from e

        if not text or not text.strip():
            raise GenerationFailedError("The AI returned an empty response. Please try again.")

        return text.strip()

    def generate_json(self, prompt: str, expected: Optional[type] = None) -> Any:
        """Send a prompt that asks for JSON and parse the answer"""
        return parse_json_response(self.generate_text(prompt), expected)

    def _translate_error(self, error: Exception) -> ExternalServiceError:
        message = str(error)
        lowered = message.lower()

        if isinstance(error, google_exceptions.ResourceExhausted) or "quota" in lowered or "429" in lowered:
            return ExternalServiceError(
                "AI service quota exceeded. Please try again later or upgrade your API plan.",
                error_code="QUOTA_EXCEEDED",
                status_code=429,
            )

        if "api key" in lowered or "api_key" in lowered:
            return ExternalServiceError(
                "AI service rejected the API key. Check GEMINI_API_KEY.",
                error_code="INVALID_API_KEY",
            )

        # ValueError: response blocked by safety filters or no candidates
        if isinstance(error, ValueError):
            return GenerationFailedError(f"The AI could not produce a response: {message}")

        return ExternalServiceError(f"AI service request failed: {message}")


# Global instance
gemini_service = GeminiService()
