from typing import Any, Dict, Optional
import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from app import config

logger = logging.getLogger(__name__)

RETRY_STATUS_CODES = (500, 502, 503, 504)


class LLMServiceError(Exception):
    """Base error for every failure of the inference provider call."""


class MissingAPIKeyError(LLMServiceError):
    def __init__(self, message: str = "API_KEY missing"):
        super().__init__(message)


class UpstreamError(LLMServiceError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamTimeoutError(LLMServiceError):
    pass


class UpstreamConnectionError(LLMServiceError):
    pass


class EmptyResponseError(LLMServiceError):
    def __init__(self, message: str = "Empty AI response"):
        super().__init__(message)


def build_session(max_retries: int, backoff_factor: float) -> requests.Session:
    """Create a session that retries connection errors and 5xx replies.

    Read timeouts are never retried, so one call waits at most one timeout.
    """
    retry = Retry(
        total=max_retries,
        connect=max_retries,
        read=False,
        status=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=frozenset(["POST"]),
        raise_on_status=False,
    )
    session = requests.Session()
    session.mount("https://", HTTPAdapter(max_retries=retry))
    session.mount("http://", HTTPAdapter(max_retries=retry))
    return session


def extract_text(data: Any) -> Optional[str]:
    """Pull candidates[0].content.parts[0].text out of a generateContent reply."""
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None


class GeminiClient:
    """Client for the Gemini generateContent REST endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else config.API_KEY
        self.model = model or config.GEMINI_MODEL
        self.api_base = (api_base or config.GEMINI_API_BASE).rstrip("/")
        self.temperature = config.LLM_TEMPERATURE if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or config.LLM_MAX_OUTPUT_TOKENS
        self.timeout = timeout or config.LLM_TIMEOUT
        self.max_retries = config.LLM_MAX_RETRIES if max_retries is None else max_retries
        self.retry_backoff = config.LLM_RETRY_BACKOFF if retry_backoff is None else retry_backoff
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = build_session(self.max_retries, self.retry_backoff)
        return self._session

    def has_credentials(self) -> bool:
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    def build_payload(self, prompt: str, image: str, mime: str) -> Dict[str, Any]:
        return {
            "contents": [{
                "parts": [
                    {"text": prompt},
                    {"inline_data": {"mime_type": mime, "data": image}},
                ]
            }],
            "generation_config": {
                "temperature": self.temperature,
                "max_output_tokens": self.max_output_tokens,
            },
        }

    def generate_content(self, prompt: str, image: str, mime: str) -> str:
        """
        Send prompt and inline image to the provider and return its text reply.

        Args:
            prompt: Instruction text
            image: Base64 encoded image data
            mime: MIME type of the image

        Returns:
            Raw text of the first candidate

        Raises:
            MissingAPIKeyError: If no credential is configured
            UpstreamTimeoutError: If the call exceeds the timeout
            UpstreamConnectionError: If the provider cannot be reached
            UpstreamError: If the provider answers with a non-success status
            EmptyResponseError: If the reply carries no text
        """
        if not self.has_credentials():
            raise MissingAPIKeyError()

        try:
            resp = self.session.post(
                self.endpoint,
                headers={"x-goog-api-key": self.api_key},
                json=self.build_payload(prompt, image, mime),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.error(f"Gemini request timed out after {self.timeout}s")
            raise UpstreamTimeoutError(f"Request timed out after {self.timeout}s")
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Unable to reach Gemini API: {e}")
            raise UpstreamConnectionError("Unable to connect to AI provider")

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.ok:
            logger.error(f"Gemini API Error ({resp.status_code}): {data if data is not None else resp.text}")
            message = None
            if isinstance(data, dict) and isinstance(data.get("error"), dict):
                message = data["error"].get("message")
            raise UpstreamError(message or "API Error", status_code=resp.status_code)

        if data is None:
            logger.error("Gemini API returned a non-JSON body")
            raise UpstreamError("Invalid AI response", status_code=resp.status_code)

        text = extract_text(data)
        if not text:
            raise EmptyResponseError()

        return text


# Global client instance
llm_client = GeminiClient()


def get_llm_client() -> GeminiClient:
    return llm_client
