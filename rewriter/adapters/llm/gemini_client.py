"""Google Gemini generation client adapter."""

from google import genai
from google.genai import types

from rewriter.adapters.llm.base import AbstractGenerationClient
from rewriter.adapters.llm.types import GenerationRequest


class GeminiClient(AbstractGenerationClient):
    """Client for Gemini ``generate_content`` using the google-genai SDK.

    Uses the SDK's async surface (``client.aio``) so a slow upstream call never
    blocks the event loop.
    """

    provider = "gemini"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
    ) -> None:
        """Initialize the Gemini client for one credential.

        Args:
            api_key: Gemini API key.
            base_url: Optional custom API endpoint.
            timeout_seconds: Upper bound for one call, in seconds.
        """
        super().__init__(timeout_seconds=timeout_seconds)
        # google-genai expects the HTTP timeout in milliseconds.
        http_options = types.HttpOptions(
            timeout=int(timeout_seconds * 1000),
            base_url=base_url,
        )
        self.client = genai.Client(api_key=api_key, http_options=http_options)

    @staticmethod
    def build_config(request: GenerationRequest) -> types.GenerateContentConfig | None:
        """Translate the request's instruction and sampling into SDK config.

        Returns None when the request carries neither, so the provider
        defaults apply (used by the verification probe).
        """
        if request.system_instruction is None and request.sampling is None:
            return None

        config_kwargs: dict = {}
        if request.system_instruction is not None:
            config_kwargs["system_instruction"] = request.system_instruction
        if request.sampling is not None:
            config_kwargs["temperature"] = request.sampling.temperature
            config_kwargs["top_p"] = request.sampling.top_p
            config_kwargs["top_k"] = request.sampling.top_k
        return types.GenerateContentConfig(**config_kwargs)

    async def aclose(self) -> None:
        await self.client.aio.aclose()

    async def _complete(self, request: GenerationRequest) -> str | None:
        contents = [
            types.Content(
                role="user",
                parts=[types.Part.from_text(text=request.prompt_text)],
            )
        ]
        response = await self.client.aio.models.generate_content(
            model=request.model_id,
            contents=contents,
            config=self.build_config(request),
        )
        return response.text
