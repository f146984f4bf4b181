"""Provider factory for building adapters from an ``EnrichmentConfig``."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Union

import httpx

from .config import EnrichmentConfig
from .errors import ProviderConfigurationError
from .providers import (
    ChatCompletionProvider,
    NLPCloudSummaryProvider,
    PrepAIQuestionProvider,
    QuestionProvider,
    SummaryProvider,
)

logger = logging.getLogger(__name__)

AnyProvider = Union[SummaryProvider, QuestionProvider]
_Builder = Callable[[EnrichmentConfig, Optional[httpx.AsyncClient]], AnyProvider]


class ProviderFactory:
    """Creates summary and question providers by name.

    Construction failures (unknown name, missing credentials) are collected in
    ``errors`` so the caller can report them per path instead of aborting.
    """

    SUMMARY_BUILDERS: Dict[str, _Builder] = {
        "nlpcloud": lambda cfg, client: NLPCloudSummaryProvider.from_options(cfg.nlpcloud, client),
        "chat": lambda cfg, client: ChatCompletionProvider.from_options(cfg.chat, client),
    }
    QUESTION_BUILDERS: Dict[str, _Builder] = {
        "prepai": lambda cfg, client: PrepAIQuestionProvider.from_options(cfg.prepai, client),
        "chat": lambda cfg, client: ChatCompletionProvider.from_options(cfg.chat, client),
    }

    def __init__(self, config: EnrichmentConfig, client: Optional[httpx.AsyncClient] = None):
        """Initialize factory.

        Args:
            config: Enrichment configuration with provider options
            client: Optional HTTP client shared by every created provider
        """
        self.config = config
        self.client = client
        self._errors: Dict[str, ProviderConfigurationError] = {}

    @property
    def errors(self) -> Dict[str, ProviderConfigurationError]:
        """Map of provider name to the error raised while creating it."""
        return dict(self._errors)

    def create_summary_provider(self, name: Optional[str] = None) -> Optional[SummaryProvider]:
        name = name or self.config.summary_provider
        return self._create(name, self.SUMMARY_BUILDERS, "summary")  # type: ignore[return-value]

    def create_question_provider(self, name: Optional[str] = None) -> Optional[QuestionProvider]:
        name = name or self.config.question_provider
        return self._create(name, self.QUESTION_BUILDERS, "question")  # type: ignore[return-value]

    def _create(
        self, name: str, builders: Dict[str, _Builder], role: str
    ) -> Optional[AnyProvider]:
        builder = builders.get(name)
        if builder is None:
            error = ProviderConfigurationError(
                f"Unknown {role} provider '{name}'", provider=name
            )
            self._errors[name] = error
            logger.error("Unknown provider requested", extra={"provider": name, "role": role})
            return None

        try:
            provider = builder(self.config, self.client)
        except ProviderConfigurationError as e:
            self._errors[name] = e
            logger.warning(
                "Provider is not configured",
                extra={"provider": name, "role": role, "error": e.reason},
            )
            return None

        logger.debug("Created provider", extra={"provider": name, "role": role})
        return provider
