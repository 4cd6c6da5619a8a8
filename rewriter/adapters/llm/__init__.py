"""Generation adapter layer - abstracts over upstream model providers."""

from rewriter.adapters.llm.base import AbstractGenerationClient
from rewriter.adapters.llm.factory import create_generation_client
from rewriter.adapters.llm.gemini_client import GeminiClient
from rewriter.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractGenerationClient",
    "GeminiClient",
    "OpenAIClient",
    "create_generation_client",
]
