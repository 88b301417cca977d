"""
Tests for submission content parsing.
"""
import json

import pytest

from nexus.exceptions import ValidationError
from nexus.services.content import (
    AnnotationContent,
    ComparisonContent,
    EvaluationContent,
    parse_content,
)


COMPARISON = {
    "chatGpt": {"input": "Explain DNS", "response": "DNS maps names...", "rating": 4},
    "gemini": {"input": "Explain DNS", "response": "It resolves...", "rating": ""},
    "comparison": {"bestModel": "ChatGPT", "reasoning": "More complete."},
}


class TestParseContent:
    """Tests for parse_content."""

    def test_free_text_is_stripped(self):
        parsed = parse_content("Chat_Sentiment", "  positive  ")
        assert isinstance(parsed, AnnotationContent)
        assert parsed.canonical() == "positive"

    def test_evaluation_types(self):
        assert isinstance(parse_content("Code_Evaluation", "looks right"), EvaluationContent)
        assert isinstance(parse_content("Text_Classification", "spam"), EvaluationContent)

    @pytest.mark.parametrize("raw", [None, "", "   ", 42])
    def test_empty_content(self, raw):
        with pytest.raises(ValidationError):
            parse_content("Chat_Sentiment", raw)

    def test_comparison_from_dict(self):
        parsed = parse_content("Model_Comparison", COMPARISON)

        assert isinstance(parsed, ComparisonContent)
        assert parsed.best_model == "ChatGPT"
        assert parsed.chat_gpt.rating == "4"
        assert parsed.gemini.rating is None
        stored = json.loads(parsed.canonical())
        assert stored["comparison"]["bestModel"] == "ChatGPT"
        assert stored["chatGpt"]["response"] == "DNS maps names..."

    def test_comparison_from_string(self):
        parsed = parse_content("Model_Comparison", json.dumps(COMPARISON))
        assert parsed.reasoning == "More complete."

    def test_comparison_rejects_plain_text(self):
        with pytest.raises(ValidationError):
            parse_content("Model_Comparison", "ChatGPT was better")

    def test_comparison_needs_model_blocks(self):
        with pytest.raises(ValidationError):
            parse_content("Model_Comparison", {"comparison": {"bestModel": "Gemini"}})

    def test_comparison_block_must_be_object(self):
        bad = dict(COMPARISON, comparison="chatGpt")
        with pytest.raises(ValidationError) as exc:
            parse_content("Model_Comparison", bad)
        assert "comparison" in str(exc.value)
