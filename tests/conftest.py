"""Shared fixtures for GreenSort tests."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.llm_service import GeminiClient, get_llm_client

BOTTLE_TEXT = (
    '{"object":"Plastic Bottle","material":"Plastic","category":"Recyclable Waste",'
    '"instruction":"Rinse and place in recycling bin","tip":"Recycling saves petroleum resources",'
    '"confidence":92}'
)


def make_response(status_code=200, payload=None, text=""):
    """Fake requests.Response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 400
    resp.text = text
    if payload is None:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        resp.json.return_value = payload
    return resp


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def llm_client(session):
    return GeminiClient(api_key="test-key", session=session)


@pytest.fixture
def api(llm_client):
    app.dependency_overrides[get_llm_client] = lambda: llm_client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
