"""
Configuration for Notewise.

Provides environment-based configuration with Pydantic settings. The
environment is read once, at process start; the enrichment pipeline only sees
the explicit ``EnrichmentConfig`` built from it.
"""

from __future__ import annotations

import json
import logging
import sys
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from notewise.enrichment.config import (
    ChatOptions,
    EnrichmentConfig,
    NLPCloudOptions,
    PrepAIOptions,
    RetryOptions,
)


class Settings(BaseSettings):
    """Process-wide settings for the Notewise service."""

    service_name: str = Field(
        default="notewise",
        validation_alias=AliasChoices("SERVICE_NAME"),
    )
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "ENV"),
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL"))
    log_format: str = Field(
        default="json",
        validation_alias=AliasChoices("LOG_FORMAT"),
        description="Log format: 'json' or 'text'",
    )

    # Storage
    database_url: str = Field(
        default="sqlite:///./notewise.db",
        validation_alias=AliasChoices("DATABASE_URL"),
    )

    # Provider selection
    summary_provider: str = Field(
        default="nlpcloud",
        validation_alias=AliasChoices("SUMMARY_PROVIDER"),
    )
    question_provider: str = Field(
        default="prepai",
        validation_alias=AliasChoices("QUESTION_PROVIDER"),
    )

    # Deadline and retry
    enrichment_timeout: float = Field(
        default=30.0,
        gt=0,
        validation_alias=AliasChoices("ENRICHMENT_TIMEOUT"),
    )
    max_input_length: int = Field(
        default=100_000,
        gt=0,
        validation_alias=AliasChoices("MAX_INPUT_LENGTH"),
    )
    retry_max_attempts: int = Field(
        default=3,
        ge=1,
        validation_alias=AliasChoices("RETRY_MAX_ATTEMPTS"),
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0,
        validation_alias=AliasChoices("RETRY_BASE_DELAY"),
    )

    # NLP Cloud
    nlp_cloud_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("NLP_CLOUD_API_KEY"),
    )
    nlp_cloud_model: str = Field(
        default="bart-large-cnn",
        validation_alias=AliasChoices("NLP_CLOUD_MODEL"),
    )
    nlp_cloud_max_input_chars: int = Field(
        default=1024,
        gt=0,
        validation_alias=AliasChoices("NLP_CLOUD_MAX_INPUT_CHARS"),
    )

    # PrepAI
    prep_ai_client_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PREP_AI_CLIENT_ID"),
    )
    prep_ai_client_secret: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("PREP_AI_CLIENT_SECRET"),
    )
    prep_ai_question_types: str = Field(
        default="1,5",
        validation_alias=AliasChoices("PREP_AI_QUESTION_TYPES"),
    )
    prep_ai_question_count: int = Field(
        default=5,
        ge=1,
        validation_alias=AliasChoices("PREP_AI_QUESTION_COUNT"),
    )
    prep_ai_max_input_chars: int = Field(
        default=2048,
        gt=0,
        validation_alias=AliasChoices("PREP_AI_MAX_INPUT_CHARS"),
    )

    # OpenAI-compatible chat
    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY"),
    )
    openai_base_url: str = Field(
        default="https://api.openai.com",
        validation_alias=AliasChoices("OPENAI_BASE_URL"),
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("OPENAI_MODEL"),
    )
    chat_max_input_chars: int = Field(
        default=4000,
        gt=0,
        validation_alias=AliasChoices("CHAT_MAX_INPUT_CHARS"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("summary_provider", "question_provider", mode="before")
    @classmethod
    def normalize_provider(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def enrichment_config(self) -> EnrichmentConfig:
        """Build the explicit pipeline configuration from these settings."""
        return EnrichmentConfig(
            summary_provider=self.summary_provider,
            question_provider=self.question_provider,
            retry=RetryOptions(
                max_attempts=self.retry_max_attempts,
                base_delay=self.retry_base_delay,
            ),
            timeout_seconds=self.enrichment_timeout,
            max_input_length=self.max_input_length,
            nlpcloud=NLPCloudOptions(
                api_key=self.nlp_cloud_api_key,
                model=self.nlp_cloud_model,
                max_input_chars=self.nlp_cloud_max_input_chars,
            ),
            prepai=PrepAIOptions(
                client_id=self.prep_ai_client_id,
                client_secret=self.prep_ai_client_secret,
                question_types=self.prep_ai_question_types,
                question_count=self.prep_ai_question_count,
                max_input_chars=self.prep_ai_max_input_chars,
            ),
            chat=ChatOptions(
                api_key=self.openai_api_key,
                base_url=self.openai_base_url,
                model=self.openai_model,
                max_input_chars=self.chat_max_input_chars,
            ),
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Attributes every LogRecord has; anything else came in through ``extra``.
_RESERVED_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, including ``extra`` fields."""

    def __init__(self, service_name: str = "notewise"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_"):
                log_record[key] = value
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure logging based on settings.

    Args:
        settings: Optional settings instance, uses cached settings if not provided
    """
    if settings is None:
        settings = get_settings()

    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter(settings.service_name))
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
