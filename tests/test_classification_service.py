import json
from unittest.mock import MagicMock

import pytest

from app.schemas.classification import AnalyzeRequest, ClassificationResult, ErrorResponse
from app.services.classification_service import (
    ClassificationService,
    ResponseParseError,
    build_fallback,
    clean_response_text,
    parse_classification,
)
from app.services.llm_service import EmptyResponseError, UpstreamError
from tests.conftest import BOTTLE_TEXT


@pytest.mark.parametrize(
    "wrapped",
    [
        f"```json\n{BOTTLE_TEXT}\n```",
        f"```\n{BOTTLE_TEXT}\n```",
        f"  \n{BOTTLE_TEXT}\n\n",
        f"```json{BOTTLE_TEXT}```",
    ],
)
def test_code_fences_are_stripped(wrapped):
    assert clean_response_text(wrapped) == BOTTLE_TEXT
    assert parse_classification(wrapped) == json.loads(BOTTLE_TEXT)


def test_parse_is_passthrough():
    text = '{"object": "Can", "category": "Something else", "confidence": 150, "extra": true}'
    assert parse_classification(text) == {
        "object": "Can",
        "category": "Something else",
        "confidence": 150,
        "extra": True,
    }


def test_parse_is_repeatable():
    text = f"```json\n{BOTTLE_TEXT}\n```"
    assert parse_classification(text) == parse_classification(text)


@pytest.mark.parametrize("text", ["not json", "{\"object\": ", "[1, 2, 3]", "null", ""])
def test_parse_rejects_non_objects(text):
    with pytest.raises(ResponseParseError):
        parse_classification(text)


def test_strict_mode_accepts_valid_result():
    assert parse_classification(BOTTLE_TEXT, strict=True, lang="en")["confidence"] == 92


@pytest.mark.parametrize(
    "override",
    [
        {"category": "Trash"},
        {"confidence": 120},
        {"confidence": -1},
        {"tip": None},
    ],
)
def test_strict_mode_rejects_invalid_result(override):
    data = json.loads(BOTTLE_TEXT)
    data.update(override)
    with pytest.raises(ResponseParseError):
        parse_classification(json.dumps(data), strict=True, lang="en")


def test_strict_mode_checks_language_of_category():
    with pytest.raises(ResponseParseError, match="Unknown category"):
        parse_classification(BOTTLE_TEXT, strict=True, lang="vi")


def test_fallback_vietnamese():
    result = build_fallback("vi", "boom", expose_errors=True)
    assert result == ClassificationResult(
        object="Lỗi phân tích",
        material="Không xác định",
        category="Chất thải khó phân hủy",
        instruction="Vui lòng thử lại sau.",
        tip="boom",
        confidence=0,
    )


def test_fallback_english_and_unknown_language():
    assert build_fallback("en", "boom").category == "General Waste"
    assert build_fallback("de", "boom").object == "Analysis Error"


def test_fallback_hides_details_when_disabled():
    result = build_fallback("en", "secret stack detail", expose_errors=False)
    assert result.tip == "The image could not be analyzed right now."


def make_service(text=None, error=None, has_key=True, **kwargs):
    client = MagicMock()
    client.has_credentials.return_value = has_key
    if error is not None:
        client.generate_content.side_effect = error
    else:
        client.generate_content.return_value = text
    return ClassificationService(client, **kwargs), client


def test_analyze_success_returns_parsed_object():
    service, client = make_service(text=f"```json\n{BOTTLE_TEXT}\n```", strict=False)
    status, body = service.analyze(AnalyzeRequest(image="aGVsbG8=", mime="image/png", lang="en"))
    assert status == 200
    assert body == json.loads(BOTTLE_TEXT)
    prompt, image, mime = client.generate_content.call_args[0]
    assert "MUST BE in English" in prompt
    assert (image, mime) == ("aGVsbG8=", "image/png")


def test_analyze_uses_default_mime():
    service, client = make_service(text=BOTTLE_TEXT)
    service.analyze(AnalyzeRequest(image="aGVsbG8=", lang="en"))
    assert client.generate_content.call_args[0][2] == "image/jpeg"


@pytest.mark.parametrize("image", [None, ""])
def test_analyze_without_image(image):
    service, client = make_service(text=BOTTLE_TEXT)
    status, body = service.analyze(AnalyzeRequest(image=image, lang="en"))
    assert status == 400
    assert isinstance(body, ErrorResponse)
    assert body.error == "No image provided"
    assert body.confidence == 0
    client.generate_content.assert_not_called()


def test_analyze_without_credentials():
    service, client = make_service(text=BOTTLE_TEXT, has_key=False)
    status, body = service.analyze(AnalyzeRequest(image="aGVsbG8=", lang="vi"))
    assert status == 500
    assert body.error == "API_KEY missing"
    assert body.category == "Chất thải khó phân hủy"
    client.generate_content.assert_not_called()


@pytest.mark.parametrize(
    "error, text",
    [
        (UpstreamError("API key not valid", status_code=403), None),
        (EmptyResponseError(), None),
        (RuntimeError("unexpected"), None),
        (None, "I think this is a bottle"),
    ],
)
def test_analyze_failures_become_fallback(error, text):
    service, _ = make_service(text=text, error=error, expose_errors=True)
    status, body = service.analyze(AnalyzeRequest(image="aGVsbG8=", lang="en"))
    assert status == 500
    assert body.confidence == 0
    assert body.category == "General Waste"
    assert body.object == "Analysis Error"
    if error is not None:
        assert str(error) in body.tip
    else:
        assert "Invalid JSON" in body.tip


def test_analyze_strict_mode_folds_validation_into_fallback():
    bad = json.loads(BOTTLE_TEXT)
    bad["confidence"] = 250
    service, _ = make_service(text=json.dumps(bad), strict=True)
    status, body = service.analyze(AnalyzeRequest(image="aGVsbG8=", lang="en"))
    assert status == 500
    assert body.confidence == 0
