from __future__ import annotations

from typing import Iterator

import pytest

from notewise.config import get_settings
from notewise.enrichment.config import (
    ChatOptions,
    EnrichmentConfig,
    NLPCloudOptions,
    PrepAIOptions,
    RetryOptions,
)
from tests.fakes.http import RequestLog

ENV_VARS_TO_CLEAR = [
    "SUMMARY_PROVIDER", "QUESTION_PROVIDER", "ENRICHMENT_TIMEOUT", "MAX_INPUT_LENGTH",
    "RETRY_MAX_ATTEMPTS", "RETRY_BASE_DELAY", "NLP_CLOUD_API_KEY", "NLP_CLOUD_MODEL",
    "NLP_CLOUD_MAX_INPUT_CHARS", "PREP_AI_CLIENT_ID", "PREP_AI_CLIENT_SECRET",
    "PREP_AI_QUESTION_TYPES", "PREP_AI_QUESTION_COUNT", "PREP_AI_MAX_INPUT_CHARS",
    "OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_MODEL", "CHAT_MAX_INPUT_CHARS",
    "DATABASE_URL", "LOG_LEVEL", "LOG_FORMAT", "ENVIRONMENT", "ENV", "SERVICE_NAME",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Run every test without credentials from the host or a .env file."""
    # Disable .env file loading by changing to a temp directory
    monkeypatch.chdir(tmp_path)
    for var in ENV_VARS_TO_CLEAR:
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def configured() -> EnrichmentConfig:
    """Config with credentials for every provider and no retry waits."""
    return EnrichmentConfig(
        retry=RetryOptions(max_attempts=3, base_delay=0.0),
        timeout_seconds=5.0,
        nlpcloud=NLPCloudOptions(api_key="nlp-key", base_url="https://nlp.test/v1"),
        prepai=PrepAIOptions(
            client_id="prep-id",
            client_secret="prep-secret",
            base_url="https://prep.test",
        ),
        chat=ChatOptions(api_key="chat-key", base_url="https://chat.test"),
    )


@pytest.fixture()
def request_log() -> RequestLog:
    return RequestLog()
