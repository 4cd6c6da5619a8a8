"""OpenAI-compatible generation client adapter."""

from typing import Any

from openai import AsyncOpenAI

from rewriter.adapters.llm.base import AbstractGenerationClient
from rewriter.adapters.llm.types import GenerationRequest


class OpenAIClient(AbstractGenerationClient):
    """Client for OpenAI-compatible chat completions.

    Works against OpenAI itself or any compatible endpoint, including
    Gemini's OpenAI-compatible surface, selected through ``base_url``.
    Chat completions have no ``top_k`` parameter, so it is not sent.
    """

    provider = "openai"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: API key for authentication.
            base_url: Optional custom base URL for an OpenAI-compatible API.
            timeout_seconds: Timeout for requests in seconds.
        """
        super().__init__(timeout_seconds=timeout_seconds)
        # SDK retries are disabled; fallback policy lives in the rewrite service.
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )

    @staticmethod
    def build_params(request: GenerationRequest) -> dict[str, Any]:
        messages: list[dict[str, str]] = []
        if request.system_instruction is not None:
            messages.append({"role": "system", "content": request.system_instruction})
        messages.append({"role": "user", "content": request.prompt_text})

        params: dict[str, Any] = {
            "model": request.model_id,
            "messages": messages,
        }
        if request.sampling is not None:
            params["temperature"] = request.sampling.temperature
            params["top_p"] = request.sampling.top_p
        return params

    async def aclose(self) -> None:
        await self.client.close()

    async def _complete(self, request: GenerationRequest) -> str | None:
        response = await self.client.chat.completions.create(**self.build_params(request))
        if not response.choices:
            return None
        return response.choices[0].message.content
