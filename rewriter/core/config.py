"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Model identifiers, sampling parameters and the rewrite system instruction
live here (or in files referenced from here) rather than in the services, so
tuning the rewrite behaviour never touches control flow.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production injects via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_llm_settings() -> "LLMSettings":
    """Build LLM settings from environment.

    Static type checkers treat BaseSettings fields as constructor arguments,
    which is not how BaseSettings is meant to be used; hence the ignore.
    """

    return LLMSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class LLMSettings(BaseSettings):
    """Upstream generation provider configuration.

    The primary model is tried first with high-variance sampling; the
    secondary model is the cheaper fallback used when the primary reports
    quota exhaustion, and is also the model the key verification probe hits.
    """

    provider: str = Field(
        "gemini",
        description="Generation provider name (gemini or openai)",
    )
    primary_model: str = Field(
        "gemini-3.1-pro-preview",
        description="Model tried first for every rewrite",
    )
    secondary_model: str = Field(
        "gemini-3-flash-preview",
        description="Fallback model used on quota exhaustion and for key verification",
    )
    api_key: str | None = Field(
        None,
        validation_alias=AliasChoices("LLM_API_KEY", "GEMINI_API_KEY"),
        description="Server-wide default credential used when the caller supplies none",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint (e.g. an OpenAI-compatible gateway)",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Timeout applied to each rewrite generation call",
        gt=0,
    )
    verify_timeout_seconds: float = Field(
        8.0,
        description="Timeout applied to the key verification probe",
        gt=0,
    )
    verify_prompt: str = Field(
        "Hi",
        description="Fixed prompt sent by the key verification probe",
    )

    primary_temperature: float = Field(1.1, ge=0)
    primary_top_p: float = Field(0.98, gt=0, le=1)
    primary_top_k: int = Field(100, ge=1)

    secondary_temperature: float = Field(1.0, ge=0)
    secondary_top_p: float = Field(0.95, gt=0, le=1)
    secondary_top_k: int = Field(64, ge=1)

    system_instruction_path: str | None = Field(
        None,
        description="Path to a text file overriding the packaged rewrite system instruction",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
        populate_by_name=True,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field("0.0.0.0", description="Bind address for the bundled server")
    port: int = Field(3000, description="Bind port for the bundled server")
    max_text_chars: int = Field(
        20000,
        description="Maximum rewrite input length in characters",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on /api/ routes",
    )
    rate_limit_requests: int = Field(
        20,
        description="Maximum number of requests admitted per window (per client)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    rate_limit_max_tracked_keys: int = Field(
        10000,
        description="Maximum number of client identifiers tracked before LRU eviction",
        ge=1,
    )
    trust_forwarded_for: bool = Field(
        True,
        description="Derive the client identifier from X-Forwarded-For when present",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting is malformed.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()
