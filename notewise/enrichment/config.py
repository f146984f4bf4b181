"""Explicit configuration value for the enrichment pipeline.

Built once at process start (see ``notewise.config.Settings.enrichment_config``)
and passed into ``enrich``; nothing in the pipeline reads the environment.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class RetryOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0.0, description="Seconds; attempt i waits i * base_delay")


class NLPCloudOptions(BaseModel):
    """NLP Cloud summarization endpoint."""

    model_config = ConfigDict(frozen=True)

    api_key: Optional[SecretStr] = None
    base_url: str = "https://api.nlpcloud.io/v1"
    model: str = "bart-large-cnn"
    min_length: int = 200
    max_length: int = 500
    max_input_chars: int = Field(default=1024, gt=0)
    request_timeout: float = 20.0


class PrepAIOptions(BaseModel):
    """PrepAI quiz generation endpoint."""

    model_config = ConfigDict(frozen=True)

    client_id: Optional[str] = None
    client_secret: Optional[SecretStr] = None
    base_url: str = "https://api.prepai.io"
    quiz_name: str = "Generated Quiz"
    question_types: str = Field(
        default="1,5",
        description="Comma-separated PrepAI type codes (1 = multiple choice, 5 = short answer)",
    )
    question_count: int = Field(default=5, ge=1)
    visual_output: bool = True
    max_input_chars: int = Field(default=2048, gt=0)
    request_timeout: float = 20.0


class ChatOptions(BaseModel):
    """OpenAI-compatible chat completions endpoint."""

    model_config = ConfigDict(frozen=True)

    api_key: Optional[SecretStr] = None
    base_url: str = "https://api.openai.com"
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 1000
    summary_word_target: Optional[int] = 150
    question_count: int = Field(default=5, ge=1)
    max_input_chars: int = Field(default=4000, gt=0)
    request_timeout: float = 20.0


class EnrichmentConfig(BaseModel):
    """Provider selection, retry and deadline for one pipeline."""

    model_config = ConfigDict(frozen=True)

    summary_provider: str = "nlpcloud"
    question_provider: str = "prepai"
    retry: RetryOptions = Field(default_factory=RetryOptions)
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_input_length: int = Field(default=100_000, gt=0)

    nlpcloud: NLPCloudOptions = Field(default_factory=NLPCloudOptions)
    prepai: PrepAIOptions = Field(default_factory=PrepAIOptions)
    chat: ChatOptions = Field(default_factory=ChatOptions)
