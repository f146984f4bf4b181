"""Normalization of raw provider payloads into canonical summaries and questions.

All functions here are pure: they take text or decoded JSON and either return
a canonical model or raise ``MalformedResponseError``. Nothing is invented;
a missing field fails instead of becoming an empty string.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from notewise.models import Question, QuestionKind, QuestionSet, Summary
from notewise.status import PayloadShape

from .errors import MalformedResponseError
from .providers import RawProviderPayload

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[ \t]*([A-Za-z0-9_-]*)[ \t]*\r?\n?(.*?)```", re.DOTALL)

SUMMARY_FIELDS = ("summary_text", "summary")
PROMPT_FIELDS = ("question", "prompt", "text")
CHOICE_FIELDS = ("choices", "options")
ANSWER_FIELDS = ("answer", "correct_answer")
KIND_FIELDS = ("type", "kind", "quesType")
CHOICE_TEXT_FIELDS = ("text", "option", "value")

_KIND_ALIASES = {
    "short-answer": QuestionKind.SHORT_ANSWER,
    "short_answer": QuestionKind.SHORT_ANSWER,
    "short answer": QuestionKind.SHORT_ANSWER,
    "short": QuestionKind.SHORT_ANSWER,
    "5": QuestionKind.SHORT_ANSWER,
    "multiple-choice": QuestionKind.MULTIPLE_CHOICE,
    "multiple_choice": QuestionKind.MULTIPLE_CHOICE,
    "multiple choice": QuestionKind.MULTIPLE_CHOICE,
    "mcq": QuestionKind.MULTIPLE_CHOICE,
    "1": QuestionKind.MULTIPLE_CHOICE,
}


# ==================== Text extraction ====================

def extract_tagged(text: Any, tag: str = "summary", *, provider: Optional[str] = None) -> str:
    """Return the stripped content between ``<tag>`` and ``</tag>``.

    Raises:
        MalformedResponseError: Markers absent or content blank
    """
    if not isinstance(text, str):
        raise MalformedResponseError("Expected a text response", provider=provider)

    pattern = re.compile(
        rf"<{re.escape(tag)}>(.*?)</{re.escape(tag)}>", re.DOTALL | re.IGNORECASE
    )
    match = pattern.search(text)
    if match is None:
        raise MalformedResponseError(
            f"Response is missing the <{tag}> markers", provider=provider
        )
    content = match.group(1).strip()
    if not content:
        raise MalformedResponseError(f"Response has an empty <{tag}> block", provider=provider)
    return content


def extract_fenced_json(text: Any, *, provider: Optional[str] = None) -> Any:
    """Parse the JSON document inside the first code fence.

    Text without any fence is parsed whole.

    Raises:
        MalformedResponseError: No parseable JSON
    """
    if not isinstance(text, str):
        raise MalformedResponseError("Expected a text response", provider=provider)

    match = _FENCE_RE.search(text)
    candidate = match.group(2) if match else text
    candidate = candidate.strip()
    if not candidate:
        raise MalformedResponseError("Response contains no JSON document", provider=provider)

    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(
            "Fenced JSON failed to parse",
            extra={"provider": provider, "error": str(e)},
        )
        raise MalformedResponseError("Response contains invalid JSON", provider=provider) from e


# ==================== Summary ====================

def normalize_summary(payload: RawProviderPayload) -> Summary:
    """Turn a raw summary payload into a ``Summary``."""
    provider = payload.provider
    if payload.shape is PayloadShape.TAGGED:
        body = extract_tagged(payload.body, "summary", provider=provider)
    elif payload.shape is PayloadShape.DIRECT_FIELD:
        body = _summary_from_mapping(payload.body, provider)
    elif payload.shape is PayloadShape.FENCED_JSON:
        body = _summary_from_mapping(extract_fenced_json(payload.body, provider=provider), provider)
    else:
        raise MalformedResponseError(
            f"Cannot read a summary from a {payload.shape.value} payload", provider=provider
        )

    try:
        return Summary(body=body, word_target=payload.word_target)
    except ValidationError as e:
        raise MalformedResponseError("Summary failed validation", provider=provider) from e


def _summary_from_mapping(data: Any, provider: Optional[str]) -> str:
    if not isinstance(data, Mapping):
        raise MalformedResponseError("Summary response is not an object", provider=provider)
    for key in SUMMARY_FIELDS:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    raise MalformedResponseError("Summary response has no summary text", provider=provider)


# ==================== Questions ====================

def normalize_questions(payload: RawProviderPayload) -> QuestionSet:
    """Turn a raw question payload into a ``QuestionSet``.

    Unusable items are dropped. An explicitly empty list is a valid, empty
    result; a non-empty list with no usable item is malformed.
    """
    provider = payload.provider
    if payload.shape is PayloadShape.FENCED_JSON:
        document = extract_fenced_json(payload.body, provider=provider)
    elif payload.shape in (PayloadShape.STRUCTURED_ITEMS, PayloadShape.DIRECT_FIELD):
        document = payload.body
    else:
        raise MalformedResponseError(
            f"Cannot read questions from a {payload.shape.value} payload", provider=provider
        )

    items = _question_items(document, provider)
    if not items:
        logger.info("Provider returned no questions", extra={"provider": provider})
        return QuestionSet([])

    questions: List[Question] = []
    for idx, item in enumerate(items):
        question = parse_question_item(item)
        if question is None:
            logger.warning(
                "Dropping unusable question item",
                extra={"provider": provider, "index": idx},
            )
            continue
        questions.append(question)

    if not questions:
        raise MalformedResponseError(
            "Response contained no usable questions", provider=provider
        )
    return QuestionSet(questions)


def _question_items(document: Any, provider: Optional[str]) -> Sequence[Any]:
    if isinstance(document, list):
        return document
    if isinstance(document, Mapping):
        items = document.get("questions")
        if isinstance(items, list):
            return items
    raise MalformedResponseError("Response has no question list", provider=provider)


def parse_question_item(item: Any) -> Optional[Question]:
    """Build a ``Question`` from one provider item, or ``None`` if unusable."""
    if not isinstance(item, Mapping):
        return None

    prompt = _join_text(_first_present(item, PROMPT_FIELDS))
    if not prompt:
        return None

    choices = _choices(_first_present(item, CHOICE_FIELDS))
    answer = _join_text(_first_present(item, ANSWER_FIELDS))
    kind = _kind(_first_present(item, KIND_FIELDS), has_choices=bool(choices))
    if kind is QuestionKind.MULTIPLE_CHOICE and not choices:
        return None

    return Question(
        kind=kind,
        prompt=prompt,
        answer=answer or None,
        choices=choices or None,
    )


def _first_present(item: Mapping, keys: Sequence[str]) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _join_text(value: Any) -> str:
    # Token fragments arrive as lists of strings
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, list):
        parts = [p.strip() for p in value if isinstance(p, str) and p.strip()]
        return " ".join(parts)
    return ""


def _choices(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    result: List[str] = []
    for entry in value:
        if isinstance(entry, Mapping):
            entry = _first_present(entry, CHOICE_TEXT_FIELDS)
        text = _join_text(entry)
        if text:
            result.append(text)
    return result


def _kind(value: Any, *, has_choices: bool) -> QuestionKind:
    if value is not None:
        key = str(value).strip().lower()
        if key in _KIND_ALIASES:
            return _KIND_ALIASES[key]
    return QuestionKind.MULTIPLE_CHOICE if has_choices else QuestionKind.SHORT_ANSWER
