import dataclasses
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api import routes
from app.core.app import create_app
from app.core.config import Settings, get_settings
from gemini_client import GeminiClient

GEMINI_TEST_BASE_URL = "https://gemini.test/v1beta/"


def _base_settings() -> Settings:
    return Settings(
        openai_api_key="sk-test",
        openai_model="gpt-4o-mini",
        gemini_api_key="gemini-test",
        gemini_api_base_url=GEMINI_TEST_BASE_URL,
        director_require_api_key=False,
        director_model="gemini-1.5-pro",
        gemini_image_models=("gemini-2.5-flash-image",),
        gemini_video_model="veo-3.0-generate-001",
        video_plan_default_model="gpt-4o-mini",
        loop_assistant_system_prompt=None,
        cors_allow_origins=("*",),
        log_level="INFO",
    )


def gemini_text_response(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class GeminiRecorder:
    """MockTransport handler that records requests and replays queued responses."""

    def __init__(self):
        self.requests = []
        self.responses = []

    def queue(self, status: int = 200, payload=None, text: str = None):
        self.responses.append((status, payload, text))
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, payload, text = self.responses.pop(0) if self.responses else (200, {}, None)
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=payload)

    def body(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)

    def client(self, api_key="gemini-test") -> GeminiClient:
        return GeminiClient(api_key, GEMINI_TEST_BASE_URL, transport=httpx.MockTransport(self))


@pytest.fixture
def make_settings():
    def _make(**overrides) -> Settings:
        return dataclasses.replace(_base_settings(), **overrides)

    return _make


@pytest.fixture
def gemini():
    return GeminiRecorder()


@pytest.fixture
def make_client(make_settings, gemini):
    def _make(settings: Settings = None, gemini_api_key="gemini-test") -> TestClient:
        settings = settings or make_settings()
        app = create_app(settings)
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[routes.get_gemini_client] = lambda: gemini.client(gemini_api_key)
        return TestClient(app, raise_server_exceptions=False)

    return _make
