"""
Document enrichment pipeline for Notewise.

Provides provider adapters, retry, response normalization and the
orchestrator that turns extracted text into a summary and quiz questions.
"""

from .config import (
    ChatOptions,
    EnrichmentConfig,
    NLPCloudOptions,
    PrepAIOptions,
    RetryOptions,
)
from .errors import (
    EnrichmentError,
    EnrichmentTimeoutError,
    ExtractionError,
    MalformedResponseError,
    PermanentProviderError,
    ProviderConfigurationError,
    ProviderError,
    RetryExhaustedError,
    TransientProviderError,
)
from .factory import ProviderFactory
from .prompt_builder import PromptBuilder
from .providers import (
    ChatCompletionProvider,
    NLPCloudSummaryProvider,
    PrepAIQuestionProvider,
    ProviderTransport,
    QuestionProvider,
    RawProviderPayload,
    SummaryProvider,
    truncate_text,
)
from .response_parser import (
    extract_fenced_json,
    extract_tagged,
    normalize_questions,
    normalize_summary,
)
from .retry import RetryPolicy, linear_backoff, with_retry
from .service import EnrichmentService, create_enrichment_service, enrich, enrich_blocking

__all__ = [
    "ChatOptions",
    "EnrichmentConfig",
    "NLPCloudOptions",
    "PrepAIOptions",
    "RetryOptions",
    "EnrichmentError",
    "EnrichmentTimeoutError",
    "ExtractionError",
    "MalformedResponseError",
    "PermanentProviderError",
    "ProviderConfigurationError",
    "ProviderError",
    "RetryExhaustedError",
    "TransientProviderError",
    "ProviderFactory",
    "PromptBuilder",
    "ChatCompletionProvider",
    "NLPCloudSummaryProvider",
    "PrepAIQuestionProvider",
    "ProviderTransport",
    "QuestionProvider",
    "RawProviderPayload",
    "SummaryProvider",
    "truncate_text",
    "extract_fenced_json",
    "extract_tagged",
    "normalize_questions",
    "normalize_summary",
    "RetryPolicy",
    "linear_backoff",
    "with_retry",
    "EnrichmentService",
    "create_enrichment_service",
    "enrich",
    "enrich_blocking",
]
