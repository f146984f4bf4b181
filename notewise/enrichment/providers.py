"""Provider adapters for summary and quiz generation.

Each adapter makes exactly one HTTP call per invocation and reports failures
through the error taxonomy in ``errors``; retries belong to ``retry``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx

from notewise.status import PayloadShape

from .config import ChatOptions, NLPCloudOptions, PrepAIOptions
from .errors import (
    MalformedResponseError,
    PermanentProviderError,
    ProviderConfigurationError,
    TransientProviderError,
)
from .prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawProviderPayload:
    """Provider response body, not yet normalized."""

    provider: str
    shape: PayloadShape
    body: Any
    status_code: int = 200
    word_target: Optional[int] = None


def truncate_text(text: str, limit: int) -> str:
    """Return at most ``limit`` leading characters of ``text``."""
    if limit <= 0:
        raise ValueError("limit must be positive")
    return text[:limit]


@runtime_checkable
class SummaryProvider(Protocol):
    """Capability: turn text into a raw summary payload."""

    @property
    def name(self) -> str: ...

    async def summarize(self, text: str) -> RawProviderPayload: ...


@runtime_checkable
class QuestionProvider(Protocol):
    """Capability: turn text into a raw question payload."""

    @property
    def name(self) -> str: ...

    async def generate_questions(self, text: str) -> RawProviderPayload: ...


class ProviderTransport:
    """Single-shot HTTP POST with provider error classification.

    Status mapping:
        429, 5xx, network errors       -> TransientProviderError
        other non-2xx                  -> PermanentProviderError
        invalid URL, unsendable header -> PermanentProviderError
        2xx with non-JSON body         -> MalformedResponseError (via ``json_body``)
    """

    def __init__(
        self,
        provider: str,
        *,
        timeout: float = 20.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize transport.

        Args:
            provider: Provider name used in error messages
            timeout: Per-request timeout in seconds
            client: Optional shared client; a short-lived one is created per call otherwise
        """
        self.provider = provider
        self.timeout = timeout
        self._client = client

    async def post(
        self,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        json: Optional[Any] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            if self._client is not None:
                response = await self._client.post(
                    url, headers=headers, json=json, data=data, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, headers=headers, json=json, data=data)
        except httpx.TimeoutException as e:
            logger.warning(
                "Provider request timed out",
                extra={"provider": self.provider, "error": str(e)},
            )
            raise TransientProviderError(
                f"Provider '{self.provider}' did not respond in time",
                provider=self.provider,
            ) from e
        except (httpx.UnsupportedProtocol, httpx.InvalidURL) as e:
            logger.error(
                "Provider URL is invalid",
                extra={"provider": self.provider, "url": url, "error": str(e)},
            )
            raise PermanentProviderError(
                f"Provider '{self.provider}' has an invalid URL",
                provider=self.provider,
            ) from e
        except (httpx.LocalProtocolError, UnicodeEncodeError) as e:
            # Raised while building the request, e.g. a credential httpx cannot put in a header
            logger.error(
                "Provider request could not be built",
                extra={"provider": self.provider, "error_type": type(e).__name__},
            )
            raise PermanentProviderError(
                f"Provider '{self.provider}' request could not be sent; check its credentials",
                provider=self.provider,
            ) from e
        except httpx.TransportError as e:
            logger.warning(
                "Provider request failed",
                extra={"provider": self.provider, "error": str(e)},
            )
            raise TransientProviderError(
                f"Provider '{self.provider}' could not be reached",
                provider=self.provider,
            ) from e

        self._raise_for_status(response)
        return response

    def json_body(self, response: httpx.Response) -> Any:
        """Decode a 2xx JSON body or raise MalformedResponseError."""
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Provider '{self.provider}' returned a body that is not JSON",
                provider=self.provider,
            ) from e

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return

        logger.warning(
            "Provider returned error status",
            extra={"provider": self.provider, "status_code": status},
        )

        if status == 429:
            raise TransientProviderError(
                f"Provider '{self.provider}' rate limited the request (HTTP 429)",
                provider=self.provider,
                retry_after=_parse_retry_after(response.headers.get("Retry-After")),
            )
        if status >= 500:
            raise TransientProviderError(
                f"Provider '{self.provider}' had a server error (HTTP {status})",
                provider=self.provider,
            )
        if status in (401, 403):
            raise PermanentProviderError(
                f"Provider '{self.provider}' rejected the credentials (HTTP {status})",
                provider=self.provider,
                status_code=status,
            )
        raise PermanentProviderError(
            f"Provider '{self.provider}' rejected the request (HTTP {status})",
            provider=self.provider,
            status_code=status,
        )


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    # Only the delta-seconds form; HTTP-date values are ignored.
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def require_header_safe(value: str, label: str, provider: str) -> str:
    """Return ``value`` if it can be sent as an HTTP header value.

    Raises:
        ProviderConfigurationError: Non-ASCII characters or a line break
    """
    if not value.isascii() or "\r" in value or "\n" in value:
        raise ProviderConfigurationError(
            f"{label} contains characters that cannot be sent in an HTTP header",
            provider=provider,
        )
    return value


class NLPCloudSummaryProvider:
    """NLP Cloud summarization (free-text provider).

    Returns the JSON body as a ``direct_field`` payload; the summary sits in
    ``summary_text`` (``summary`` on older deployments).
    """

    name = "nlpcloud"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.nlpcloud.io/v1",
        model: str = "bart-large-cnn",
        min_length: int = 200,
        max_length: int = 500,
        max_input_chars: int = 1024,
        timeout: float = 20.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.min_length = min_length
        self.max_length = max_length
        self.max_input_chars = max_input_chars
        self._transport = ProviderTransport(self.name, timeout=timeout, client=client)

    @classmethod
    def from_options(
        cls, options: NLPCloudOptions, client: Optional[httpx.AsyncClient] = None
    ) -> "NLPCloudSummaryProvider":
        api_key = options.api_key.get_secret_value() if options.api_key else ""
        if not api_key:
            raise ProviderConfigurationError(
                "NLP Cloud API key is not configured", provider=cls.name
            )
        require_header_safe(api_key, "NLP Cloud API key", cls.name)
        return cls(
            api_key,
            base_url=options.base_url,
            model=options.model,
            min_length=options.min_length,
            max_length=options.max_length,
            max_input_chars=options.max_input_chars,
            timeout=options.request_timeout,
            client=client,
        )

    async def summarize(self, text: str) -> RawProviderPayload:
        sent = truncate_text(text, self.max_input_chars)
        logger.debug(
            "Sending text to NLP Cloud",
            extra={"provider": self.name, "chars": len(sent), "original_chars": len(text)},
        )
        response = await self._transport.post(
            f"{self.base_url}/{self.model}/summarization",
            headers={
                "Authorization": f"Token {self._api_key}",
                "Content-Type": "application/json",
            },
            json={"text": sent, "min_length": self.min_length, "max_length": self.max_length},
        )
        body = self._transport.json_body(response)
        if not isinstance(body, dict):
            raise MalformedResponseError(
                "NLP Cloud returned an unexpected response shape", provider=self.name
            )
        return RawProviderPayload(
            provider=self.name,
            shape=PayloadShape.DIRECT_FIELD,
            body=body,
            status_code=response.status_code,
        )


class PrepAIQuestionProvider:
    """PrepAI quiz generation (structured quiz provider).

    The API takes form fields and answers ``{"success": bool, "response": [...]}``;
    each item carries its question as a list of text fragments.
    """

    name = "prepai"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        base_url: str = "https://api.prepai.io",
        quiz_name: str = "Generated Quiz",
        question_types: str = "1,5",
        question_count: int = 5,
        visual_output: bool = True,
        max_input_chars: int = 2048,
        timeout: float = 20.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self.base_url = base_url.rstrip("/")
        self.quiz_name = quiz_name
        self.question_types = question_types
        self.question_count = question_count
        self.visual_output = visual_output
        self.max_input_chars = max_input_chars
        self._transport = ProviderTransport(self.name, timeout=timeout, client=client)

    @classmethod
    def from_options(
        cls, options: PrepAIOptions, client: Optional[httpx.AsyncClient] = None
    ) -> "PrepAIQuestionProvider":
        secret = options.client_secret.get_secret_value() if options.client_secret else ""
        if not options.client_id or not secret:
            raise ProviderConfigurationError(
                "PrepAI client id/secret are not configured", provider=cls.name
            )
        require_header_safe(options.client_id, "PrepAI client id", cls.name)
        require_header_safe(secret, "PrepAI client secret", cls.name)
        return cls(
            options.client_id,
            secret,
            base_url=options.base_url,
            quiz_name=options.quiz_name,
            question_types=options.question_types,
            question_count=options.question_count,
            visual_output=options.visual_output,
            max_input_chars=options.max_input_chars,
            timeout=options.request_timeout,
            client=client,
        )

    def build_form(self, text: str) -> Dict[str, str]:
        """Form fields for one quiz request."""
        return {
            "quizName": self.quiz_name,
            "content": text,
            "quesType": self.question_types,
            "quesCount": str(self.question_count),
            "visualOutput": "1" if self.visual_output else "0",
        }

    async def generate_questions(self, text: str) -> RawProviderPayload:
        sent = truncate_text(text, self.max_input_chars)
        logger.debug(
            "Sending text to PrepAI",
            extra={"provider": self.name, "chars": len(sent), "original_chars": len(text)},
        )
        response = await self._transport.post(
            f"{self.base_url}/generateQuestionsApi",
            headers={
                "clientId": self._client_id,
                "clientSecret": self._client_secret,
            },
            data=self.build_form(sent),
        )
        body = self._transport.json_body(response)
        if not isinstance(body, dict) or not body.get("success"):
            raise MalformedResponseError(
                "PrepAI did not return valid questions", provider=self.name
            )
        items = body.get("response")
        if not isinstance(items, list):
            raise MalformedResponseError(
                "PrepAI response is missing the question list", provider=self.name
            )
        return RawProviderPayload(
            provider=self.name,
            shape=PayloadShape.STRUCTURED_ITEMS,
            body=items,
            status_code=response.status_code,
        )


class ChatCompletionProvider:
    """OpenAI-compatible chat completions, usable for both paths.

    Summaries come back wrapped in ``<summary>`` tags, quizzes as a fenced JSON
    document; both are left for the normalizer to unpack.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        *,
        name: str = "chat",
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 1000,
        summary_word_target: Optional[int] = 150,
        question_count: int = 5,
        max_input_chars: int = 4000,
        timeout: float = 20.0,
        prompt_builder: Optional[PromptBuilder] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._name = name
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.summary_word_target = summary_word_target
        self.question_count = question_count
        self.max_input_chars = max_input_chars
        self.prompt_builder = prompt_builder or PromptBuilder()
        self._transport = ProviderTransport(name, timeout=timeout, client=client)

    @property
    def name(self) -> str:
        return self._name

    @classmethod
    def from_options(
        cls, options: ChatOptions, client: Optional[httpx.AsyncClient] = None
    ) -> "ChatCompletionProvider":
        api_key = options.api_key.get_secret_value() if options.api_key else ""
        if not api_key:
            raise ProviderConfigurationError(
                "Chat completion API key is not configured", provider="chat"
            )
        require_header_safe(api_key, "Chat completion API key", "chat")
        return cls(
            options.base_url,
            api_key,
            model=options.model,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            summary_word_target=options.summary_word_target,
            question_count=options.question_count,
            max_input_chars=options.max_input_chars,
            timeout=options.request_timeout,
            client=client,
        )

    async def summarize(self, text: str) -> RawProviderPayload:
        sent = truncate_text(text, self.max_input_chars)
        prompt = self.prompt_builder.build_summary(sent, word_target=self.summary_word_target)
        content, status = await self._complete(prompt)
        return RawProviderPayload(
            provider=self.name,
            shape=PayloadShape.TAGGED,
            body=content,
            status_code=status,
            word_target=self.summary_word_target,
        )

    async def generate_questions(self, text: str) -> RawProviderPayload:
        sent = truncate_text(text, self.max_input_chars)
        prompt = self.prompt_builder.build_questions(sent, count=self.question_count)
        content, status = await self._complete(prompt)
        return RawProviderPayload(
            provider=self.name,
            shape=PayloadShape.FENCED_JSON,
            body=content,
            status_code=status,
        )

    async def _complete(self, prompt: str) -> tuple[str, int]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        response = await self._transport.post(
            f"{self.base_url}/v1/chat/completions",
            headers=headers,
            json={
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
            },
        )
        result = self._transport.json_body(response)
        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(
                f"Provider '{self.name}' returned no completion", provider=self.name
            ) from e
        if not isinstance(content, str):
            raise MalformedResponseError(
                f"Provider '{self.name}' returned no completion", provider=self.name
            )
        return content, response.status_code
