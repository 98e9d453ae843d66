"""Tests for the completion port helpers."""

import pytest

from article_fact_checker.core.llm import OpenAICompletionClient, StaticCompletionClient, parse_json_object


class TestParseJsonObject:
    """Tests for tolerant JSON parsing."""

    def test_plain_object(self):
        """A bare JSON object parses directly."""
        assert parse_json_object('{"results": []}') == {"results": []}

    def test_code_fence(self):
        """JSON wrapped in a markdown fence is unwrapped."""
        assert parse_json_object('```json\n{"results": [1]}\n```') == {"results": [1]}

    def test_surrounding_chatter(self):
        """Text around the object is ignored."""
        assert parse_json_object('Sure! {"a": 1} Hope that helps.') == {"a": 1}

    @pytest.mark.parametrize("raw", ["no json here", "[1, 2]", "{broken"])
    def test_invalid_raises(self, raw):
        """Non-object or broken JSON raises ValueError."""
        with pytest.raises(ValueError):
            parse_json_object(raw)


class TestStaticCompletionClient:
    """Tests for the in-memory client."""

    def test_matches_marker_case_insensitively(self):
        """Responses are chosen by case-insensitive prompt marker."""
        client = StaticCompletionClient({"revenue": {"results": ["r"]}})
        assert client.complete("Check REVENUE lines") == {"results": ["r"]}
        assert client.prompts == ["Check REVENUE lines"]

    def test_unmatched_prompt_raises(self):
        """A prompt with no configured response raises."""
        with pytest.raises(ValueError):
            StaticCompletionClient({}).complete("anything")


class TestOpenAICompletionClient:
    """Tests for the OpenAI adapter."""

    def test_missing_api_key_raises(self, monkeypatch):
        """Constructing the OpenAI client without a key fails early."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
            OpenAICompletionClient()
