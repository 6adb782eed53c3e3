from typing import Any, Dict, Optional, Tuple, Union
import json
import logging
import re

from fastapi import Depends
from pydantic import ValidationError

from app import config
from app.schemas.classification import AnalyzeRequest, ClassificationResult, ErrorResponse
from app.services.llm_service import GeminiClient, LLMServiceError, get_llm_client
from app.utils.prompt_builder import build_classification_prompt, get_categories, resolve_language

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"```json|```")

FALLBACK_TEXT = {
    "vi": {
        "object": "Lỗi phân tích",
        "material": "Không xác định",
        "instruction": "Vui lòng thử lại sau.",
        "tip": "Không thể phân tích hình ảnh vào lúc này.",
    },
    "en": {
        "object": "Analysis Error",
        "material": "Unknown",
        "instruction": "Please try again later.",
        "tip": "The image could not be analyzed right now.",
    },
}


class ResponseParseError(Exception):
    """Provider text could not be turned into a classification object."""


def clean_response_text(text: str) -> str:
    """Remove markdown code fences the model wraps around its JSON."""
    return _CODE_FENCE_RE.sub("", text).strip()


def parse_classification(text: str, strict: bool = False, lang: Optional[str] = None) -> Dict[str, Any]:
    """
    Parse provider text into a classification object.

    Args:
        text: Raw text returned by the provider
        strict: Also check the object against ClassificationResult,
            the category list and the confidence range
        lang: Language whose category list applies in strict mode

    Returns:
        The parsed JSON object, unchanged

    Raises:
        ResponseParseError: If the text is not a JSON object or fails strict checks
    """
    try:
        data = json.loads(clean_response_text(text))
    except (TypeError, ValueError) as e:
        raise ResponseParseError(f"Invalid JSON in AI response: {e}")

    if not isinstance(data, dict):
        raise ResponseParseError("AI response is not a JSON object")

    if strict:
        try:
            result = ClassificationResult(**data)
        except ValidationError as e:
            raise ResponseParseError(f"AI response does not match schema: {e.error_count()} error(s)")
        if result.category not in get_categories(lang):
            raise ResponseParseError(f"Unknown category: {result.category}")
        if not 0 <= result.confidence <= 99:
            raise ResponseParseError(f"Confidence out of range: {result.confidence}")

    return data


def build_fallback(lang: Optional[str], message: str, expose_errors: Optional[bool] = None) -> ClassificationResult:
    """Deterministic result returned whenever analysis fails."""
    if expose_errors is None:
        expose_errors = config.EXPOSE_ERROR_DETAILS
    lang = resolve_language(lang)
    text = FALLBACK_TEXT[lang]

    return ClassificationResult(
        object=text["object"],
        material=text["material"],
        category=config.WASTE_CATEGORIES[lang][config.GENERAL_WASTE_INDEX],
        instruction=text["instruction"],
        tip=message if expose_errors and message else text["tip"],
        confidence=0,
    )


def build_error(lang: Optional[str], message: str) -> ErrorResponse:
    fallback = build_fallback(lang, message)
    return ErrorResponse(error=message, **fallback.model_dump())


class ClassificationService:
    """Relay an image to the inference provider and normalize its answer."""

    def __init__(
        self,
        client: GeminiClient,
        strict: Optional[bool] = None,
        expose_errors: Optional[bool] = None,
    ):
        self.client = client
        self.strict = config.STRICT_VALIDATION if strict is None else strict
        self.expose_errors = config.EXPOSE_ERROR_DETAILS if expose_errors is None else expose_errors

    def analyze(self, request: AnalyzeRequest) -> Tuple[int, Union[Dict[str, Any], ClassificationResult]]:
        """
        Run one classification request end to end.

        Returns:
            (HTTP status code, response body)
        """
        lang = resolve_language(request.lang)

        if not request.image:
            logger.warning("Rejected analyze request without image")
            return 400, build_error(lang, "No image provided")
        if not self.client.has_credentials():
            logger.error("API_KEY is not configured")
            return 500, build_error(lang, "API_KEY missing")

        try:
            prompt = build_classification_prompt(lang)
            text = self.client.generate_content(prompt, request.image, request.mime or config.DEFAULT_MIME)
            result = parse_classification(text, strict=self.strict, lang=lang)
        except (LLMServiceError, ResponseParseError) as e:
            logger.error(f"Analysis failed ({type(e).__name__}): {e}")
            return 500, build_fallback(lang, str(e), self.expose_errors)
        except Exception as e:
            logger.exception("Unexpected error during analysis")
            return 500, build_fallback(lang, str(e), self.expose_errors)

        logger.info(f"Analysis complete: {result.get('object')} / {result.get('category')} ({result.get('confidence')})")
        return 200, result


def get_classification_service(client: GeminiClient = Depends(get_llm_client)) -> ClassificationService:
    return ClassificationService(client)
