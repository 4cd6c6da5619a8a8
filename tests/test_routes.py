"""End-to-end tests for /api/rewrite, /api/verify and /health.

The generation provider is replaced through FastAPI dependency overrides, so
every test runs the real middleware, credential resolution, fallback logic
and error translation without network access.
"""

import pytest

from rewriter.adapters.llm.types import GenerationFailure, GenerationSuccess, SamplingConfig
from rewriter.api.routes.rewrite import (
    get_rewrite_service,
    get_server_credential,
    get_verification_service,
)
from rewriter.core.errors import ErrorClass
from rewriter.services.model_profiles import ModelProfile
from rewriter.services.rewrite_service import RewriteService
from rewriter.services.verification_service import VerificationService

PRIMARY_MODEL = "primary-model"
SECONDARY_MODEL = "secondary-model"


def _failure(classification: ErrorClass, status: int, model_id: str, message: str) -> GenerationFailure:
    return GenerationFailure(
        classification=classification,
        message=message,
        raw_detail="{}",
        http_status_hint=status,
        model_id=model_id,
    )


QUOTA = _failure(ErrorClass.QUOTA_EXHAUSTED, 429, PRIMARY_MODEL, "RESOURCE_EXHAUSTED: quota exceeded")


@pytest.fixture
def install(app, make_factory):
    """Wire fake upstream outcomes and an optional server key into the app."""

    def _install(outcomes, *, server_key=None):
        factory = make_factory(outcomes)
        app.dependency_overrides[get_rewrite_service] = lambda: RewriteService(
            factory,
            primary=ModelProfile(PRIMARY_MODEL, SamplingConfig(1.1, 0.98, 100)),
            secondary=ModelProfile(SECONDARY_MODEL, SamplingConfig(1.0, 0.95, 64)),
            system_instruction="Rewrite like a person.",
            max_text_chars=200,
        )
        app.dependency_overrides[get_verification_service] = lambda: VerificationService(
            factory, model_id=SECONDARY_MODEL
        )
        app.dependency_overrides[get_server_credential] = lambda: server_key
        return factory

    return _install


class TestRewriteEndpoint:
    def test_rewrite_with_user_key(self, client, install) -> None:
        factory = install({PRIMARY_MODEL: GenerationSuccess("It's a decent day, I guess.", PRIMARY_MODEL)})

        response = client.post(
            "/api/rewrite",
            json={"text": "The weather is nice today.", "apiKey": "user-key"},
        )

        assert response.status_code == 200
        assert response.json() == {"text": "It's a decent day, I guess."}
        assert factory.calls[0][0] == "user-key"

    def test_fallback_on_primary_quota(self, client, install) -> None:
        factory = install(
            {
                PRIMARY_MODEL: QUOTA,
                SECONDARY_MODEL: GenerationSuccess("Fallback text", SECONDARY_MODEL),
            }
        )

        response = client.post("/api/rewrite", json={"text": "Hello", "apiKey": "k"})

        assert response.status_code == 200
        assert response.json() == {"text": "Fallback text"}
        assert len(factory.client.calls_for(SECONDARY_MODEL)) == 1

    def test_uses_server_default_key(self, client, install) -> None:
        factory = install(
            {PRIMARY_MODEL: GenerationSuccess("ok", PRIMARY_MODEL)},
            server_key="server-key",
        )

        response = client.post("/api/rewrite", json={"text": "Hello"})

        assert response.status_code == 200
        assert factory.calls[0][0] == "server-key"

    def test_user_key_is_trimmed(self, client, install) -> None:
        factory = install({PRIMARY_MODEL: GenerationSuccess("ok", PRIMARY_MODEL)})

        client.post("/api/rewrite", json={"text": "Hello", "apiKey": "  user-key  "})

        assert factory.calls[0][0] == "user-key"

    def test_missing_key_is_401(self, client, install) -> None:
        factory = install({})

        response = client.post("/api/rewrite", json={"text": "Hello", "apiKey": "   "})

        assert response.status_code == 401
        assert response.json() == {
            "error": "API Key is missing. Please configure it on the server or provide one."
        }
        assert factory.calls == []

    @pytest.mark.parametrize(
        ("classification", "status", "message"),
        [
            (ErrorClass.AUTH_INVALID, 403, "API key not valid. Please pass a valid API key."),
            (ErrorClass.MALFORMED, 400, "Invalid argument"),
            (ErrorClass.UNKNOWN, 500, "Internal error encountered."),
            (ErrorClass.UNKNOWN, 503, "The model is overloaded."),
        ],
    )
    def test_primary_failure_propagates(self, client, install, classification, status, message) -> None:
        factory = install(
            {
                PRIMARY_MODEL: _failure(classification, status, PRIMARY_MODEL, message),
                SECONDARY_MODEL: GenerationSuccess("unused", SECONDARY_MODEL),
            }
        )

        response = client.post("/api/rewrite", json={"text": "Hello", "apiKey": "k"})

        assert response.status_code == status
        assert response.json() == {"error": message}
        assert factory.client.calls_for(SECONDARY_MODEL) == []

    def test_both_models_exhausted(self, client, install) -> None:
        install(
            {
                PRIMARY_MODEL: QUOTA,
                SECONDARY_MODEL: _failure(
                    ErrorClass.QUOTA_EXHAUSTED, 429, SECONDARY_MODEL, "429 RESOURCE_EXHAUSTED"
                ),
            }
        )

        response = client.post("/api/rewrite", json={"text": "Hello", "apiKey": "k"})

        assert response.status_code == 429
        assert "RESOURCE_EXHAUSTED" in response.json()["error"]

    def test_blank_text_is_400(self, client, install) -> None:
        install({})

        response = client.post("/api/rewrite", json={"text": "   ", "apiKey": "k"})

        assert response.status_code == 400
        assert response.json() == {"error": "Text is required."}

    def test_too_long_text_is_400(self, client, install) -> None:
        install({})

        response = client.post("/api/rewrite", json={"text": "x" * 201, "apiKey": "k"})

        assert response.status_code == 400
        assert "too long" in response.json()["error"]

    @pytest.mark.parametrize("body", [{}, {"text": 123}, {"apiKey": "k"}])
    def test_wrong_shape_is_400(self, client, install, body) -> None:
        install({})

        response = client.post("/api/rewrite", json=body)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request body")

    def test_invalid_json_is_400(self, client, install) -> None:
        install({})

        response = client.post(
            "/api/rewrite",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert set(response.json()) == {"error"}

    def test_wrong_method_is_405(self, client, install) -> None:
        install({})

        response = client.get("/api/rewrite")

        assert response.status_code == 405
        assert response.json() == {"error": "Method Not Allowed"}


class TestVerifyEndpoint:
    def test_valid_key(self, client, install) -> None:
        factory = install({SECONDARY_MODEL: GenerationSuccess("Hello!", SECONDARY_MODEL)})

        response = client.post("/api/verify", json={"apiKey": "user-key"})

        assert response.status_code == 200
        assert response.json() == {"status": "valid"}
        assert factory.client.requests[0].prompt_text == "Hi"

    def test_invalid_key(self, client, install) -> None:
        install(
            {
                SECONDARY_MODEL: _failure(
                    ErrorClass.AUTH_INVALID,
                    400,
                    SECONDARY_MODEL,
                    "API key not valid. Please pass a valid API key.",
                )
            }
        )

        response = client.post("/api/verify", json={"apiKey": "bad-key"})

        assert response.status_code == 400
        assert response.json() == {
            "status": "invalid",
            "error": "API key not valid. Please pass a valid API key.",
        }

    @pytest.mark.parametrize("body", [{}, {"apiKey": ""}, {"apiKey": "   "}])
    def test_missing_key(self, client, install, body) -> None:
        install({})

        response = client.post("/api/verify", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "API Key is required"}

    def test_never_uses_server_default(self, client, install) -> None:
        factory = install(
            {SECONDARY_MODEL: GenerationSuccess("Hello!", SECONDARY_MODEL)},
            server_key="server-key",
        )

        response = client.post("/api/verify", json={})

        assert response.status_code == 400
        assert factory.calls == []

    def test_wrong_method_is_405(self, client, install) -> None:
        install({})

        assert client.get("/api/verify").status_code == 405


class TestRateLimiting:
    def test_21st_verify_is_rejected(self, client, install) -> None:
        install({SECONDARY_MODEL: GenerationSuccess("Hello!", SECONDARY_MODEL)})

        statuses = [
            client.post("/api/verify", json={"apiKey": "k"}).status_code for _ in range(21)
        ]

        assert statuses[:20] == [200] * 20
        assert statuses[20] == 429

    def test_rejection_body_and_headers(self, client, install) -> None:
        install({SECONDARY_MODEL: GenerationSuccess("Hello!", SECONDARY_MODEL)})
        for _ in range(20):
            client.post("/api/verify", json={"apiKey": "k"})

        response = client.post("/api/verify", json={"apiKey": "k"})

        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests. Please try again later."}
        assert int(response.headers["Retry-After"]) >= 1
        assert response.headers["X-RateLimit-Limit"] == "20"
        assert response.headers["X-RateLimit-Remaining"] == "0"

    def test_budget_is_shared_across_operations(self, client, install) -> None:
        install(
            {
                PRIMARY_MODEL: GenerationSuccess("ok", PRIMARY_MODEL),
                SECONDARY_MODEL: GenerationSuccess("Hello!", SECONDARY_MODEL),
            }
        )
        for _ in range(10):
            client.post("/api/verify", json={"apiKey": "k"})
        for _ in range(10):
            client.post("/api/rewrite", json={"text": "Hello", "apiKey": "k"})

        response = client.post("/api/rewrite", json={"text": "Hello", "apiKey": "k"})

        assert response.status_code == 429

    def test_limit_applies_before_method_and_body_checks(self, client, install) -> None:
        factory = install({})
        for _ in range(20):
            client.post("/api/rewrite", json={})

        assert client.get("/api/rewrite").status_code == 429
        assert client.post("/api/rewrite", json={"text": "Hello", "apiKey": "k"}).status_code == 429
        assert factory.calls == []

    def test_forwarded_for_identifies_client(self, client, install) -> None:
        install({SECONDARY_MODEL: GenerationSuccess("Hello!", SECONDARY_MODEL)})
        first = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}
        for _ in range(20):
            client.post("/api/verify", json={"apiKey": "k"}, headers=first)

        blocked = client.post("/api/verify", json={"apiKey": "k"}, headers=first)
        other = client.post(
            "/api/verify", json={"apiKey": "k"}, headers={"X-Forwarded-For": "198.51.100.2"}
        )

        assert blocked.status_code == 429
        assert other.status_code == 200

    def test_health_is_not_rate_limited(self, client) -> None:
        statuses = {client.get("/health").status_code for _ in range(25)}

        assert statuses == {200}


class TestHealthAndHeaders:
    def test_health(self, client, monkeypatch) -> None:
        from rewriter.core.config import settings

        monkeypatch.setattr(settings.llm, "api_key", "server-key")

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["server_key_configured"] is True
        assert "server-key" not in response.text

    def test_request_id_generated(self, client) -> None:
        response = client.get("/health")

        assert response.headers["X-Request-ID"]
        assert "X-Request-Duration-ms" in response.headers

    def test_request_id_echoed_on_error(self, client, install) -> None:
        install({})

        response = client.post(
            "/api/rewrite",
            json={"text": "Hello"},
            headers={"X-Request-ID": "trace-123"},
        )

        assert response.status_code == 401
        assert response.headers["X-Request-ID"] == "trace-123"
