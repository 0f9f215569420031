from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from cookka.core.settings import Settings
from cookka.dependencies import get_gemini_service
from cookka.main import create_app
from cookka.services.gemini_service import GeminiService
from tests.fakes import FakeGeminiClient


@pytest.fixture
def settings(monkeypatch) -> Settings:
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    return Settings(_env_file=None)


@pytest.fixture
def unconfigured_settings(monkeypatch) -> Settings:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    return Settings(_env_file=None)


@pytest.fixture
def make_client():
    def _make(settings: Settings, fake: FakeGeminiClient) -> TestClient:
        app = create_app()
        app.dependency_overrides[get_gemini_service] = lambda: GeminiService(
            settings=settings, client=fake
        )
        return TestClient(app)

    return _make
