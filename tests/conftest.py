"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before any test module, so the
environment below is in place before rewriter.core.config builds settings.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

# Tests decide explicitly whether a server default key exists.
os.environ.pop("LLM_API_KEY", None)
os.environ.pop("GEMINI_API_KEY", None)
os.environ.setdefault("LLM_PROVIDER", "gemini")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from rewriter.adapters.llm.types import GenerationOutcome, GenerationRequest
from rewriter.core.rate_limit import get_rate_limiter



class FakeGenerationClient:
    """Stands in for a provider client: scripted outcome per model id.

    Every request is recorded so tests can assert which models were called
    and with what configuration.
    """

    def __init__(self, outcomes: dict[str, GenerationOutcome]) -> None:
        self.outcomes = outcomes
        self.requests: list[GenerationRequest] = []
        self.closed = 0

    async def generate(self, request: GenerationRequest, *, require_text: bool = True) -> GenerationOutcome:
        self.requests.append(request)
        return self.outcomes[request.model_id]

    async def aclose(self) -> None:
        self.closed += 1

    def calls_for(self, model_id: str) -> list[GenerationRequest]:
        return [request for request in self.requests if request.model_id == model_id]


class FakeClientFactory:
    """Callable matching create_generation_client's signature."""

    def __init__(self, client: FakeGenerationClient) -> None:
        self.client = client
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, api_key: str, **kwargs) -> FakeGenerationClient:
        self.calls.append((api_key, kwargs))
        return self.client


@pytest.fixture
def make_factory():
    """Build a FakeClientFactory from a ``{model_id: outcome}`` mapping."""

    def _make(outcomes: dict[str, GenerationOutcome]) -> FakeClientFactory:
        return FakeClientFactory(FakeGenerationClient(outcomes))

    return _make


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Give every test a clean rate limit state."""
    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()


@pytest.fixture
def app():
    from rewriter.main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
