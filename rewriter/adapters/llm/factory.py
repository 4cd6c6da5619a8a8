"""Factory pattern for creating generation client instances."""

from rewriter.adapters.llm.base import AbstractGenerationClient
from rewriter.adapters.llm.gemini_client import GeminiClient
from rewriter.adapters.llm.openai_client import OpenAIClient
from rewriter.core.config import settings
from rewriter.core.errors import ConfigurationAppError

SUPPORTED_PROVIDERS = ("gemini", "openai")


def create_generation_client(
    api_key: str,
    *,
    timeout_seconds: float | None = None,
) -> AbstractGenerationClient:
    """Instantiate a generation client for one credential.

    Clients are built per request because the credential is per request:
    a caller-supplied key must never leak into another caller's client.

    Args:
        api_key: Resolved credential value.
        timeout_seconds: Per-call timeout; defaults to LLM_TIMEOUT_SECONDS.

    Returns:
        AbstractGenerationClient: Configured client instance.

    Raises:
        ConfigurationAppError: If the configured provider is unknown.
    """
    provider = settings.llm.provider.lower()
    timeout = timeout_seconds if timeout_seconds is not None else settings.llm.timeout_seconds

    if provider == "gemini":
        return GeminiClient(
            api_key,
            base_url=settings.llm.base_url,
            timeout_seconds=timeout,
        )

    if provider == "openai":
        return OpenAIClient(
            api_key,
            base_url=settings.llm.base_url,
            timeout_seconds=timeout,
        )

    raise ConfigurationAppError(
        code="llm_unknown_provider",
        message=(
            f"Unknown LLM provider: '{provider}'. "
            f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
        ),
    )
