"""EnrichmentService - Orchestrator for summary and quiz generation."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, TypeVar, Union

import httpx

from notewise.models import (
    EnrichmentRequest,
    EnrichmentResult,
    ErrorMarker,
    QuestionSet,
    Summary,
)
from notewise.status import EnrichmentPath, ErrorKind

from .config import EnrichmentConfig
from .errors import EnrichmentError, EnrichmentTimeoutError, ProviderConfigurationError
from .factory import ProviderFactory
from .providers import QuestionProvider, RawProviderPayload, SummaryProvider
from .response_parser import normalize_questions, normalize_summary
from .retry import RetryPolicy, SleepFn

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EnrichmentService:
    """Pure orchestrator for document enrichment.

    Runs the summary path and the question path concurrently. Each path is
    provider call -> retry policy -> normalizer, and each failure is captured
    as an ``ErrorMarker`` in the result, so ``enrich`` never raises for
    provider, parsing, or timeout problems.
    """

    def __init__(
        self,
        summary_provider: Optional[SummaryProvider],
        question_provider: Optional[QuestionProvider],
        retry: Optional[RetryPolicy] = None,
        timeout_seconds: float = 30.0,
        *,
        unavailable: Optional[Dict[EnrichmentPath, EnrichmentError]] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        """Initialize enrichment service.

        Args:
            summary_provider: Provider for the summary path, or None if unavailable
            question_provider: Provider for the question path, or None if unavailable
            retry: Retry policy applied to each provider call
            timeout_seconds: Overall deadline for one ``enrich`` call
            unavailable: Why a path has no provider, reported in its ErrorMarker
            sleep: Sleep coroutine for retry waits
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.summary_provider = summary_provider
        self.question_provider = question_provider
        self.retry = retry or RetryPolicy()
        self.timeout_seconds = timeout_seconds
        self._unavailable = dict(unavailable or {})
        self._sleep = sleep

    async def enrich(
        self,
        request: EnrichmentRequest,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> EnrichmentResult:
        """Produce a summary and questions for ``request``.

        Args:
            request: Extracted text and input limit
            cancel_event: External signal abandoning in-flight work

        Returns:
            Result with each field either populated or an ErrorMarker
        """
        text = request.clipped_text()
        deadline = asyncio.get_running_loop().time() + self.timeout_seconds

        logger.info(
            "Starting enrichment run",
            extra={
                "chars": len(text),
                "summary_provider": _provider_name(self.summary_provider),
                "question_provider": _provider_name(self.question_provider),
            },
        )

        summary, questions = await asyncio.gather(
            self._run_summary(text, deadline, cancel_event),
            self._run_questions(text, deadline, cancel_event),
        )
        result = EnrichmentResult(summary=summary, questions=questions)

        logger.info(
            "Completed enrichment run",
            extra={"summary_ok": result.summary_ok, "questions_ok": result.questions_ok},
        )
        return result

    async def _run_summary(
        self, text: str, deadline: float, cancel_event: Optional[asyncio.Event]
    ) -> Union[Summary, ErrorMarker]:
        provider = self.summary_provider
        if provider is None:
            return self._unavailable_marker(EnrichmentPath.SUMMARY)
        return await self._run_path(
            EnrichmentPath.SUMMARY,
            provider.name,
            lambda: provider.summarize(text),
            normalize_summary,
            deadline,
            cancel_event,
        )

    async def _run_questions(
        self, text: str, deadline: float, cancel_event: Optional[asyncio.Event]
    ) -> Union[QuestionSet, ErrorMarker]:
        provider = self.question_provider
        if provider is None:
            return self._unavailable_marker(EnrichmentPath.QUESTIONS)
        return await self._run_path(
            EnrichmentPath.QUESTIONS,
            provider.name,
            lambda: provider.generate_questions(text),
            normalize_questions,
            deadline,
            cancel_event,
        )

    async def _run_path(
        self,
        path: EnrichmentPath,
        provider_name: str,
        call: Callable[[], Awaitable[RawProviderPayload]],
        normalize: Callable[[RawProviderPayload], T],
        deadline: float,
        cancel_event: Optional[asyncio.Event],
    ) -> Union[T, ErrorMarker]:
        label = f"{path.value} path"
        log_extra = {"path": path.value, "provider": provider_name}
        logger.debug("Starting enrichment path", extra=log_extra)

        async def _attempt_chain() -> T:
            payload = await self.retry.run(
                call,
                cancel_event=cancel_event,
                deadline=deadline,
                sleep=self._sleep,
                label=label,
            )
            return normalize(payload)

        try:
            value = await _bounded(_attempt_chain(), deadline, cancel_event, label)
        except EnrichmentError as e:
            logger.warning(
                "Enrichment path failed",
                extra={**log_extra, "error_kind": e.error_kind.value, "error": e.reason},
            )
            marker = ErrorMarker.from_exception(e)
            if marker.provider is None:
                marker = marker.model_copy(update={"provider": provider_name})
            return marker
        except Exception:
            logger.error("Unexpected error in enrichment path", extra=log_extra, exc_info=True)
            return ErrorMarker(
                kind=ErrorKind.UNEXPECTED,
                reason="Unexpected error during enrichment",
                provider=provider_name,
            )

        logger.debug("Completed enrichment path", extra=log_extra)
        return value

    def _unavailable_marker(self, path: EnrichmentPath) -> ErrorMarker:
        error = self._unavailable.get(path) or ProviderConfigurationError(
            f"No {path.value} provider is configured"
        )
        logger.warning(
            "Enrichment path has no provider",
            extra={"path": path.value, "error": error.reason},
        )
        return ErrorMarker.from_exception(error)


async def _bounded(
    coro: Awaitable[T],
    deadline: float,
    cancel_event: Optional[asyncio.Event],
    label: str,
) -> T:
    """Await ``coro`` until it finishes, the deadline passes, or ``cancel_event`` is set."""
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(coro)
    waiters = {task}
    cancel_waiter: Optional[asyncio.Future] = None
    if cancel_event is not None:
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        waiters.add(cancel_waiter)

    try:
        remaining = max(deadline - loop.time(), 0.0)
        done, _ = await asyncio.wait(
            waiters, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    if cancel_event is not None and cancel_event.is_set():
        raise EnrichmentTimeoutError(f"{label.capitalize()} was cancelled")
    raise EnrichmentTimeoutError(f"{label.capitalize()} did not finish before the deadline")


def _provider_name(provider: Optional[Union[SummaryProvider, QuestionProvider]]) -> Optional[str]:
    return provider.name if provider is not None else None


def create_enrichment_service(
    config: EnrichmentConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> EnrichmentService:
    """Factory function to create a configured EnrichmentService.

    Args:
        config: Provider selection, retry and timeout settings
        client: Optional shared HTTP client for all providers

    Returns:
        Configured EnrichmentService; paths whose provider could not be
        built report a permanent ErrorMarker
    """
    factory = ProviderFactory(config, client)
    summary_provider = factory.create_summary_provider()
    question_provider = factory.create_question_provider()

    errors = factory.errors
    unavailable: Dict[EnrichmentPath, EnrichmentError] = {}
    if summary_provider is None and config.summary_provider in errors:
        unavailable[EnrichmentPath.SUMMARY] = errors[config.summary_provider]
    if question_provider is None and config.question_provider in errors:
        unavailable[EnrichmentPath.QUESTIONS] = errors[config.question_provider]

    return EnrichmentService(
        summary_provider=summary_provider,
        question_provider=question_provider,
        retry=RetryPolicy(
            max_attempts=config.retry.max_attempts,
            base_delay=config.retry.base_delay,
        ),
        timeout_seconds=config.timeout_seconds,
        unavailable=unavailable,
    )


async def enrich(
    request: EnrichmentRequest,
    config: EnrichmentConfig,
    *,
    client: Optional[httpx.AsyncClient] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> EnrichmentResult:
    """Enrich ``request`` with the providers selected in ``config``."""
    service = create_enrichment_service(config, client)
    return await service.enrich(request, cancel_event=cancel_event)


def enrich_blocking(request: EnrichmentRequest, config: EnrichmentConfig) -> EnrichmentResult:
    """Run ``enrich`` to completion from synchronous code."""
    return asyncio.run(enrich(request, config))
