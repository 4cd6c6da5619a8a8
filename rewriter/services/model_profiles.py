"""Model profiles and the rewrite system instruction.

A profile pairs a model identifier with its sampling parameters. Both come
from LLMSettings, and the system instruction comes from a text file, so
retuning the rewrite never touches the fallback logic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from rewriter.adapters.llm.types import SamplingConfig
from rewriter.core.config import LLMSettings
from rewriter.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_INSTRUCTION_PATH = (
    Path(__file__).resolve().parents[1] / "prompts" / "rewrite_system.txt"
)


@dataclass(frozen=True)
class ModelProfile:
    model_id: str
    sampling: SamplingConfig


def primary_profile(llm: LLMSettings) -> ModelProfile:
    """Flagship model with high-variance sampling for stylistic range."""
    return ModelProfile(
        model_id=llm.primary_model,
        sampling=SamplingConfig(
            temperature=llm.primary_temperature,
            top_p=llm.primary_top_p,
            top_k=llm.primary_top_k,
        ),
    )


def secondary_profile(llm: LLMSettings) -> ModelProfile:
    """Cheaper fallback model with slightly tighter sampling."""
    return ModelProfile(
        model_id=llm.secondary_model,
        sampling=SamplingConfig(
            temperature=llm.secondary_temperature,
            top_p=llm.secondary_top_p,
            top_k=llm.secondary_top_k,
        ),
    )


@lru_cache(maxsize=8)
def load_system_instruction(path: str | None = None) -> str:
    """Read the rewrite system instruction.

    Args:
        path: Optional override file; the packaged prompt is used when None.

    Returns:
        The instruction text, stripped of surrounding whitespace.

    Raises:
        ConfigurationAppError: If the file is missing or empty.
    """
    source = Path(path) if path else DEFAULT_SYSTEM_INSTRUCTION_PATH
    try:
        instruction = source.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigurationAppError(
            code="system_instruction_unreadable",
            message=f"Cannot read system instruction file: {source}",
        ) from exc

    if not instruction:
        raise ConfigurationAppError(
            code="system_instruction_empty",
            message=f"System instruction file is empty: {source}",
        )

    logger.info(
        "system_instruction.loaded",
        extra={"source": str(source), "chars": len(instruction)},
    )
    return instruction
