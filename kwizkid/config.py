"""
Application configuration using Pydantic Settings.

Single source of configuration for KwizKid.
Loads from ``KWIZKID_``-prefixed environment variables with .env file support.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kwizkid.core.constants import AIProviderType, QuizDefaults


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KWIZKID_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "KwizKid"
    environment: Literal["development", "staging", "production"] = "development"

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept level names in any case."""
        return str(v).upper()

    # Quiz
    questions_per_quiz: int = Field(default=QuizDefaults.QUESTIONS_PER_QUIZ, ge=1)
    seconds_per_question: int = Field(default=QuizDefaults.SECONDS_PER_QUESTION, ge=1)

    # Effects
    effect_timeout: float | None = None  # seconds, None waits indefinitely

    # AI content generation
    ai_provider: AIProviderType = AIProviderType.MOCK
    ai_max_tokens: int = 1000
    ai_temperature: float = 0.7
    ai_timeout: float = 60.0
    mock_latency: float = 0.0  # seconds

    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"

    claude_api_key: str = ""
    claude_model: str = "claude-3-sonnet-20240229"

    # AWS (credentials come from the standard boto3 chain)
    aws_region: str = "us-east-1"
    bedrock_model: str = "anthropic.claude-3-sonnet-20240229-v1:0"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
