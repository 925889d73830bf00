"""
Unit tests for services/prompt_service.py
"""

import pytest

from core.errors import EmptyContext, ValidationError
from services.prompt_service import (
    NOT_FOUND_ANSWER,
    SYSTEM_MESSAGE,
    build_prompt,
    prompt_from_messages,
    truncate_context,
)


class TestTruncateContext:
    def test_keeps_prefix(self):
        assert truncate_context("abcdef", 3) == "abc"

    def test_short_text_unchanged(self):
        assert truncate_context("abc", 10) == "abc"

    def test_negative_cap_rejected(self):
        with pytest.raises(ValueError):
            truncate_context("abc", -1)


class TestBuildPrompt:
    def test_context_is_exactly_cap_for_long_text(self):
        text = "x" * 500
        prompt = build_prompt(text, "What is x?", cap=120)
        assert len(prompt.context) == 120
        assert prompt.truncated is True

    @pytest.mark.parametrize("cap", [0, 1, 50, 10_000])
    def test_question_is_last_and_unmodified_for_any_cap(self, cap):
        question = "What does section 4 say about refunds?"
        prompt = build_prompt("lorem ipsum " * 1000, question, cap=cap)
        assert prompt.prompt.endswith(question)
        assert prompt.question == question

    def test_instructs_to_answer_only_from_content(self):
        prompt = build_prompt("The sky is blue.", "What colour is the sky?")
        assert "ONLY the PDF content" in prompt.prompt
        assert NOT_FOUND_ANSWER in prompt.prompt
        assert "The sky is blue." in prompt.prompt

    def test_question_is_trimmed(self):
        prompt = build_prompt("text", "  why?  \n")
        assert prompt.question == "why?"
        assert prompt.prompt.endswith("Question: why?")

    def test_text_with_braces_is_embedded_verbatim(self):
        prompt = build_prompt("f(x) = {x: 1}", "What is f?")
        assert "f(x) = {x: 1}" in prompt.prompt

    def test_messages_have_system_then_user(self):
        prompt = build_prompt("text", "q?")
        assert prompt.messages == [
            {"role": "system", "content": SYSTEM_MESSAGE},
            {"role": "user", "content": prompt.prompt},
        ]

    @pytest.mark.parametrize("text", ["", "   \n\t"])
    def test_empty_text_raises_empty_context(self, text):
        with pytest.raises(EmptyContext) as exc_info:
            build_prompt(text, "anything")
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("question", ["", "   "])
    def test_empty_question_raises_validation_error(self, question):
        with pytest.raises(ValidationError):
            build_prompt("some text", question)


class TestPromptFromMessages:
    def test_forwards_system_and_user_verbatim(self):
        messages = [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "PDF Content:\nabc\n\nQuestion: q?"},
        ]
        prompt = prompt_from_messages(messages)

        assert prompt.messages == messages
        assert prompt.question == "q?"
        assert prompt.truncated is False

    def test_without_marker_the_whole_prompt_is_the_question(self):
        prompt = prompt_from_messages([{"role": "user", "content": " what is this? "}])
        assert prompt.question == "what is this?"
        assert prompt.messages[0] == {"role": "system", "content": SYSTEM_MESSAGE}

    def test_last_user_message_wins(self):
        prompt = prompt_from_messages(
            [{"role": "user", "content": "first"}, {"role": "user", "content": "second"}]
        )
        assert prompt.prompt == "second"

    @pytest.mark.parametrize(
        "messages",
        [
            [],
            [{"role": "system", "content": "Be brief."}],
            [{"role": "user", "content": "   "}],
        ],
    )
    def test_missing_or_blank_user_message_rejected(self, messages):
        with pytest.raises(ValidationError):
            prompt_from_messages(messages)
