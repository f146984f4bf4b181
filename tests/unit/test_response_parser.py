"""Unit tests for normalizing raw provider payloads."""
import pytest

from notewise.enrichment.errors import MalformedResponseError
from notewise.enrichment.providers import RawProviderPayload
from notewise.enrichment.response_parser import (
    extract_fenced_json,
    extract_tagged,
    normalize_questions,
    normalize_summary,
    parse_question_item,
)
from notewise.models import QuestionKind
from notewise.status import ErrorKind, PayloadShape


def _payload(shape: PayloadShape, body, word_target=None) -> RawProviderPayload:
    return RawProviderPayload(provider="test", shape=shape, body=body, word_target=word_target)


class TestExtractTagged:
    def test_returns_stripped_content(self):
        assert extract_tagged("Intro <summary>  Plants make food.  </summary> bye") == "Plants make food."

    def test_tag_match_is_case_insensitive_and_multiline(self):
        text = "<SUMMARY>\nLine one.\nLine two.\n</Summary>"
        assert extract_tagged(text) == "Line one.\nLine two."

    def test_missing_markers_is_malformed(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            extract_tagged("no tags here", provider="chat")
        assert exc_info.value.provider == "chat"
        assert exc_info.value.error_kind is ErrorKind.MALFORMED_RESPONSE

    def test_blank_content_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            extract_tagged("<summary>   </summary>")

    def test_non_text_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            extract_tagged({"summary": "x"})


class TestExtractFencedJson:
    def test_parses_json_fence(self):
        text = 'Here you go:\n```json\n{"questions": []}\n```\nThanks'
        assert extract_fenced_json(text) == {"questions": []}

    def test_parses_fence_without_language(self):
        assert extract_fenced_json('```\n[1, 2]\n```') == [1, 2]

    def test_unfenced_text_is_parsed_whole(self):
        assert extract_fenced_json('  {"a": 1}  ') == {"a": 1}

    def test_invalid_json_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            extract_fenced_json("```json\n{not json}\n```")

    def test_empty_fence_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            extract_fenced_json("```json\n```")


class TestNormalizeSummary:
    def test_tagged_payload(self):
        summary = normalize_summary(
            _payload(PayloadShape.TAGGED, "<summary>Short text.</summary>", word_target=150)
        )
        assert summary.body == "Short text."
        assert summary.word_target == 150

    def test_direct_field_prefers_summary_text(self):
        summary = normalize_summary(
            _payload(PayloadShape.DIRECT_FIELD, {"summary_text": "From NLP.", "summary": "Other"})
        )
        assert summary.body == "From NLP."

    def test_direct_field_falls_back_to_summary(self):
        summary = normalize_summary(_payload(PayloadShape.DIRECT_FIELD, {"summary": " Legacy. "}))
        assert summary.body == "Legacy."

    def test_direct_field_without_text_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            normalize_summary(_payload(PayloadShape.DIRECT_FIELD, {"summary_text": ""}))

    def test_fenced_json_summary(self):
        summary = normalize_summary(
            _payload(PayloadShape.FENCED_JSON, '```json\n{"summary": "Fenced."}\n```')
        )
        assert summary.body == "Fenced."

    def test_structured_items_cannot_hold_a_summary(self):
        with pytest.raises(MalformedResponseError):
            normalize_summary(_payload(PayloadShape.STRUCTURED_ITEMS, []))


class TestNormalizeQuestions:
    def test_token_fragments_are_joined(self):
        items = [{"question": ["What", "is", "photosynthesis", "?"], "answer": "A process"}]
        questions = normalize_questions(_payload(PayloadShape.STRUCTURED_ITEMS, items))

        assert len(questions) == 1
        assert questions[0].prompt == "What is photosynthesis ?"
        assert questions[0].answer == "A process"
        assert questions[0].kind is QuestionKind.SHORT_ANSWER

    def test_fenced_json_document(self):
        text = """```json
{"questions": [
  {"type": "multiple-choice", "question": "Pick one", "choices": ["A", "B"], "answer": "A"},
  {"type": "short-answer", "question": "Explain", "answer": "Because"}
]}
```"""
        questions = normalize_questions(_payload(PayloadShape.FENCED_JSON, text))

        assert [q.kind for q in questions] == [
            QuestionKind.MULTIPLE_CHOICE,
            QuestionKind.SHORT_ANSWER,
        ]
        assert questions[0].choices == ["A", "B"]

    def test_order_is_preserved(self):
        items = [{"question": f"Q{i}"} for i in range(5)]
        questions = normalize_questions(_payload(PayloadShape.STRUCTURED_ITEMS, items))
        assert [q.prompt for q in questions] == ["Q0", "Q1", "Q2", "Q3", "Q4"]

    def test_unusable_items_are_dropped(self):
        items = [{"question": ""}, "not an object", {"question": "Kept"}]
        questions = normalize_questions(_payload(PayloadShape.STRUCTURED_ITEMS, items))
        assert [q.prompt for q in questions] == ["Kept"]

    def test_empty_list_is_a_valid_empty_result(self):
        questions = normalize_questions(_payload(PayloadShape.FENCED_JSON, '{"questions": []}'))
        assert len(questions) == 0

    def test_all_items_unusable_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            normalize_questions(_payload(PayloadShape.STRUCTURED_ITEMS, [{"answer": "x"}]))

    def test_missing_question_list_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            normalize_questions(_payload(PayloadShape.DIRECT_FIELD, {"items": []}))

    def test_tagged_payload_cannot_hold_questions(self):
        with pytest.raises(MalformedResponseError):
            normalize_questions(_payload(PayloadShape.TAGGED, "<summary>x</summary>"))


class TestParseQuestionItem:
    def test_prepai_type_codes(self):
        mcq = parse_question_item(
            {"question": ["Pick"], "quesType": 1, "options": [{"text": "A"}, {"option": "B"}]}
        )
        short = parse_question_item({"question": ["Why"], "quesType": "5"})

        assert mcq.kind is QuestionKind.MULTIPLE_CHOICE
        assert mcq.choices == ["A", "B"]
        assert short.kind is QuestionKind.SHORT_ANSWER
        assert short.choices is None

    def test_choices_imply_multiple_choice(self):
        question = parse_question_item({"prompt": "Pick", "choices": ["Yes", "No"]})
        assert question.kind is QuestionKind.MULTIPLE_CHOICE

    def test_multiple_choice_without_choices_is_dropped(self):
        assert parse_question_item({"question": "Pick", "type": "mcq"}) is None

    def test_correct_answer_alias(self):
        question = parse_question_item({"text": "Capital?", "correct_answer": "Paris"})
        assert question.answer == "Paris"

    def test_no_prompt_is_dropped(self):
        assert parse_question_item({"answer": "orphan"}) is None
