"""Application configuration using Pydantic Settings."""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONTENT_DIR = Path(__file__).resolve().parents[2] / "content"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]
SECRET_FILE_ENV_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "HF_API_KEY",
)

LLMProvider = Literal["auto", "openai", "anthropic", "huggingface"]


def _load_secret_file_env_vars() -> None:
    """Allow secrets to be sourced from *_FILE env vars (Docker secrets)."""
    for env_var in SECRET_FILE_ENV_VARS:
        file_var = f"{env_var}_FILE"
        file_path = os.getenv(file_var)
        if not file_path:
            continue
        try:
            value = Path(file_path).read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise RuntimeError(f"Failed to read {file_var} at {file_path}") from exc
        if not value:
            raise ValueError(f"{file_var} is empty")
        os.environ[env_var] = value


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ----- Application -----
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False

    # ----- Content -----
    content_dir: Path = DEFAULT_CONTENT_DIR
    # Empty base URL keeps links site-relative ("/projects/<slug>")
    site_base_url: str = ""

    # ----- Model backend selection -----
    llm_provider: LLMProvider = "auto"

    # ----- OpenAI-compatible endpoint -----
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = ""

    # ----- Anthropic -----
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"

    # ----- Hugging Face (text completions only) -----
    hf_api_key: str = ""
    hf_model: str = ""

    # ----- Generation parameters -----
    llm_max_tokens: int = 2048
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 30.0

    # ----- Chat loop -----
    chat_max_iterations: int = Field(default=5, ge=1)
    chat_max_cards: int = Field(default=5, ge=0)

    # ----- Rate limiting -----
    rate_limit_chat: str = "20/minute"
    rate_limit_storage_uri: str = "memory://"

    # ----- CORS -----
    # Can be set as JSON list or comma-separated string
    cors_origins_str: str = Field(default="http://localhost:3000", alias="cors_origins")

    @property
    def cors_origins(self) -> list[str]:
        """Parse cors_origins from comma-separated string or JSON list."""
        v = self.cors_origins_str
        if not v:
            return list(DEFAULT_CORS_ORIGINS)
        if v.startswith("["):
            raw = json.loads(v)
            if not isinstance(raw, list) or not all(isinstance(origin, str) for origin in raw):
                raise ValueError("CORS_ORIGINS must be a JSON list of strings")
            return raw
        return [origin.strip() for origin in v.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def resolve_llm_provider(self) -> Literal["openai", "anthropic", "huggingface"] | None:
        """Return the backend to use, resolving ``auto`` from configured keys.

        Returns None when ``auto`` is set and no backend has credentials.
        """
        if self.llm_provider != "auto":
            return self.llm_provider
        if self.openai_api_key:
            return "openai"
        if self.anthropic_api_key:
            return "anthropic"
        if self.hf_api_key:
            return "huggingface"
        return None

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Ensure secure settings in production environment."""
        if self.is_production:
            if self.app_debug:
                raise ValueError("APP_DEBUG must be false in production!")
            if "*" in self.cors_origins:
                raise ValueError("CORS_ORIGINS must be restricted in production!")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    _load_secret_file_env_vars()
    return Settings()
