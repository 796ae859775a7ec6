"""Centralized settings module: single source of truth for all config.

All secrets loaded exclusively from env vars. Never committed, never logged.
Redaction enforced everywhere via observability.redaction.
"""
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # ── Environment ──────────────────────────────────────────────
    ENV: Literal["dev", "staging", "prod"] = Field(default="dev")

    # ── Language model ───────────────────────────────────────────
    GEMINI_API_KEY: str = Field(default="")
    GEMINI_MODEL: str = Field(default="gemini-2.0-flash")
    GEMINI_BASE_URL: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    LLM_TIMEOUT_S: float = Field(default=8.0)  # classifier bound on one model call
    LLM_TEMPERATURE: float = Field(default=0.1)

    # ── Observability ────────────────────────────────────────────
    LOG_LEVEL: str = Field(default="INFO")
    LOG_REDACTION_ENABLED: bool = Field(default=True)
    ANALYTICS_BUFFER_SIZE: int = Field(default=50)

    # ── HTTP surface ─────────────────────────────────────────────
    CORS_ORIGINS: str = Field(default="*")  # comma separated

    # ── Feature Flags ────────────────────────────────────────────
    MOCK_LLM: bool = Field(default=True)

    model_config = {
        "env_file": str(_ROOT / ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
