"""Error taxonomy for the enrichment pipeline.

Adapters raise these instead of raw transport exceptions; the retry policy
only retries ``TransientProviderError`` and the orchestrator turns every one of
them into an ``ErrorMarker``.
"""
from __future__ import annotations

from typing import Optional

from notewise.status import ErrorKind


class EnrichmentError(Exception):
    """Base class for all pipeline errors."""

    error_kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, reason: str, *, provider: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.provider = provider


class ProviderError(EnrichmentError):
    """A provider call failed."""


class TransientProviderError(ProviderError):
    """Rate limited or temporarily unavailable; retrying may help."""

    error_kind = ErrorKind.TRANSIENT

    def __init__(
        self,
        reason: str,
        *,
        provider: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(reason, provider=provider)
        self.retry_after = retry_after


class RetryExhaustedError(TransientProviderError):
    """Every attempt allowed by the retry policy failed transiently."""

    error_kind = ErrorKind.RETRY_EXHAUSTED

    def __init__(self, attempts: int, last_error: TransientProviderError):
        provider = last_error.provider
        label = f"Provider '{provider}'" if provider else "Provider"
        super().__init__(
            f"{label} still unavailable after {attempts} attempts: {last_error.reason}",
            provider=provider,
            retry_after=last_error.retry_after,
        )
        self.attempts = attempts
        self.last_error = last_error


class PermanentProviderError(ProviderError):
    """Rejected request or bad credentials; retrying will not help."""

    error_kind = ErrorKind.PERMANENT

    def __init__(
        self,
        reason: str,
        *,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(reason, provider=provider)
        self.status_code = status_code


class ProviderConfigurationError(PermanentProviderError):
    """Provider is unknown or lacks required settings (e.g. API keys)."""


class MalformedResponseError(ProviderError):
    """Provider answered 2xx but the content could not be used."""

    error_kind = ErrorKind.MALFORMED_RESPONSE


class EnrichmentTimeoutError(EnrichmentError):
    """Overall deadline passed or the run was cancelled."""

    error_kind = ErrorKind.TIMEOUT


class ExtractionError(EnrichmentError):
    """Uploaded file is empty, corrupt, or of an unsupported kind."""

    error_kind = ErrorKind.EXTRACTION
