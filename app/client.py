import base64
import json
import logging
from typing import List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:3000"
REQUEST_TIMEOUT = 60  # seconds

RESULT_FIELDS = ("object", "category", "instruction", "tip", "confidence")


def is_failure(result: dict) -> bool:
    """A confidence of 0 marks a fallback result, whatever the HTTP status was."""
    try:
        return int(result.get("confidence", 0)) == 0
    except (TypeError, ValueError):
        return True


class GreenSortClient:
    """Small HTTP client for the GreenSort API, used by the Streamlit demo."""

    def __init__(self, base_url: str = DEFAULT_API_BASE_URL, timeout: int = REQUEST_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def health(self) -> Tuple[bool, Optional[str]]:
        """Return (is_up, message_or_status)."""
        try:
            resp = self.session.get(f"{self.base_url}/health", timeout=5)
            if resp.status_code == 200:
                try:
                    return True, resp.json().get("status")
                except Exception:
                    return True, None
            return False, f"HTTP {resp.status_code}"
        except requests.exceptions.RequestException as e:
            return False, str(e)

    def categories(self, lang: str) -> List[str]:
        resp = self.session.get(f"{self.base_url}/categories", params={"lang": lang}, timeout=5)
        resp.raise_for_status()
        return resp.json().get("categories", [])

    def analyze(self, image_bytes: bytes, mime: str, lang: str) -> Tuple[Optional[dict], Optional[str]]:
        """POST an image to /analyze and return (result, error)."""
        payload = {
            "image": base64.b64encode(image_bytes).decode("ascii"),
            "mime": mime,
            "lang": lang,
        }
        try:
            resp = self.session.post(f"{self.base_url}/analyze", json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout:
            return None, "Request timed out. The backend may be busy or the image is large."
        except requests.exceptions.ConnectionError:
            return None, "Unable to connect to API. Verify API URL and network connectivity."

        try:
            data = resp.json()
        except ValueError:
            data = None

        # Fallback bodies arrive with 4xx/5xx but still carry a full result
        if isinstance(data, dict) and all(field in data for field in RESULT_FIELDS):
            return data, None

        if isinstance(data, dict):
            detail = data.get("error") or data.get("detail") or json.dumps(data)
        else:
            detail = resp.text
        logger.warning(f"Unexpected response from API: {resp.status_code}")
        return None, f"{resp.status_code}: {detail}"
