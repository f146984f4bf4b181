"""Prompt building for chat-completion providers."""
from __future__ import annotations

import logging
from textwrap import dedent
from typing import Optional

logger = logging.getLogger(__name__)


class PromptBuilder:
    """Builds summary and quiz prompts.

    The output formats requested here are the ones the response parser
    understands: ``<summary>`` tags for summaries and a fenced JSON document
    for questions.
    """

    def __init__(self, summary_tag: str = "summary"):
        self.summary_tag = summary_tag

    def build_summary(self, text: str, *, word_target: Optional[int] = None) -> str:
        """Build a summarization prompt.

        Args:
            text: Document text (already truncated)
            word_target: Approximate summary length in words

        Returns:
            Complete prompt
        """
        length_rule = (
            f"- Keep the summary to roughly {word_target} words."
            if word_target
            else "- Keep the summary to a single concise paragraph."
        )
        tag = self.summary_tag
        instructions = dedent(
            f"""
            You are a study assistant summarizing course material for a student.

            Rules:
            - Summarize only what the document says. Do not invent facts.
            {length_rule}
            - Wrap the summary in <{tag}> and </{tag}> and write nothing outside the tags.
            """
        ).strip()
        return f"{instructions}\n\n<document>\n{text}\n</document>"

    def build_questions(self, text: str, *, count: int = 5) -> str:
        """Build a quiz-generation prompt.

        Args:
            text: Document text (already truncated)
            count: Number of questions to request

        Returns:
            Complete prompt
        """
        instructions = dedent(
            f"""
            You are a teacher writing a short quiz about the document below.

            Rules:
            - Write exactly {count} questions answerable from the document alone.
            - Mix "multiple-choice" and "short-answer" questions.
            - Multiple-choice questions list their options in "choices".
            - Respond with a single ```json fenced block and nothing else.

            Output shape:
            ```json
            {{"questions": [
              {{"type": "short-answer", "question": "...", "answer": "..."}},
              {{"type": "multiple-choice", "question": "...", "choices": ["...", "..."], "answer": "..."}}
            ]}}
            ```
            """
        ).strip()
        logger.debug("Built quiz prompt", extra={"question_count": count, "chars": len(text)})
        return f"{instructions}\n\n<document>\n{text}\n</document>"
