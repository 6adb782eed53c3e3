import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Server Settings
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# LLM Settings
API_KEY = os.getenv("API_KEY") or os.getenv("GEMINI_API_KEY")
GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", 30))
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", 0.1))
LLM_MAX_OUTPUT_TOKENS = int(os.getenv("LLM_MAX_OUTPUT_TOKENS", 1024))
LLM_MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", 2))
LLM_RETRY_BACKOFF = float(os.getenv("LLM_RETRY_BACKOFF", 0.5))

# Response Settings
STRICT_VALIDATION = _as_bool(os.getenv("STRICT_VALIDATION"), False)
EXPOSE_ERROR_DETAILS = _as_bool(os.getenv("EXPOSE_ERROR_DETAILS"), True)

# Upload Settings
MAX_BODY_SIZE = int(os.getenv("MAX_BODY_SIZE", 15 * 1024 * 1024))
DEFAULT_MIME = os.getenv("DEFAULT_MIME", "image/jpeg")

# Languages
SUPPORTED_LANGUAGES = ("vi", "en")
DEFAULT_LANG = os.getenv("DEFAULT_LANG", "vi")

# Waste Categories (Fixed Label Sets)
WASTE_CATEGORIES = {
    "vi": [
        "Chất thải hữu cơ",
        "Chất thải tái chế",
        "Chất thải nguy hại",
        "Chất thải khó phân hủy",
        "Không phải rác",
    ],
    "en": [
        "Organic Waste",
        "Recyclable Waste",
        "Hazardous Waste",
        "General Waste",
        "Not Waste",
    ],
}
GENERAL_WASTE_INDEX = 3
