"""
Shared fixtures for the Gemini audio backend tests.

The Gemini API is never called: route tests swap the inference client for a
stub through FastAPI's dependency overrides, client tests hand the
GeminiAudioClient a fake google-genai client.
"""

import os

os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ.setdefault("PROMETHEUS_ENABLED", "true")

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from gemini_audio.dependencies import get_gemini_client
from gemini_audio.main import app
from gemini_audio.models.gemini import ModelRequest, ModelResult, TextResult


class StubGeminiClient:
    """Records every request and answers with a canned outcome."""

    def __init__(self, result: ModelResult | None = None):
        self.result = result or TextResult(content="[00:00 - 00:01] \"stub\"")
        self.requests: list[ModelRequest] = []

    async def analyze(self, request: ModelRequest) -> ModelResult:
        self.requests.append(request)
        return self.result


@pytest.fixture
def stub_gemini() -> StubGeminiClient:
    return StubGeminiClient()


@pytest.fixture
def client(stub_gemini: StubGeminiClient):
    """TestClient without the lifespan hook, wired to the stub."""
    app.dependency_overrides[get_gemini_client] = lambda: stub_gemini
    yield TestClient(app)
    app.dependency_overrides.clear()


def _fake_genai(generate_content) -> SimpleNamespace:
    return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))


@pytest.fixture
def fake_genai():
    """Mimics the `client.aio.models.generate_content` path of google-genai."""
    return _fake_genai


@pytest.fixture
def genai_returning():
    def _build(text):
        mock = AsyncMock(return_value=SimpleNamespace(text=text))
        return _fake_genai(mock), mock

    return _build
