"""Tests for the Anthropic analysis provider and response parsing."""

import json
from unittest.mock import MagicMock

import pytest

from seo_content_studio.errors import ProviderError, ProviderUnavailable
from seo_content_studio.llm_client import (
    AnthropicAnalysisProvider,
    build_analysis_prompt,
    extract_json,
    parse_analysis_response,
)


ANALYSIS_RESPONSE = {
    "overallScore": 78.6,
    "scores": {
        "keywordDensity": 70,
        "readability": 85,
        "titleOptimization": 90,
        "metaDescription": 40,
        "headingStructure": 55,
        "contentLength": 60,
        "keywordPlacement": 75,
    },
    "suggestedKeywords": [
        {"keyword": "seo basics", "relevance": 90, "searchVolume": "High", "difficulty": "easy"},
    ],
    "improvements": [
        {"category": "Meta Description", "suggestion": "Write a meta description", "priority": "HIGH", "impact": 8},
    ],
    "aiInsights": "Good start.",
    "suggestedTitle": "SEO Tips: 10 Steps",
    "suggestedMetaDescription": "",
}


def make_client(text: str) -> MagicMock:
    """Build a mock Anthropic client whose messages.create returns text."""
    client = MagicMock()
    response = MagicMock()
    response.content = [MagicMock(text=text)]
    client.messages.create.return_value = response
    return client


class TestExtractJson:
    """Tests for extract_json."""

    def test_plain_json(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_strips_code_fences(self):
        assert extract_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_invalid_json(self):
        with pytest.raises(ProviderError, match="Failed to parse"):
            extract_json("not json at all")

    def test_non_object(self):
        with pytest.raises(ProviderError, match="not a JSON object"):
            extract_json("[1, 2]")


class TestParseAnalysisResponse:
    """Tests for parse_analysis_response."""

    def test_parses_camel_case_payload(self):
        result = parse_analysis_response(json.dumps(ANALYSIS_RESPONSE))

        assert result.overall_score == 79
        assert result.scores.title_optimization == 90
        assert result.suggested_keywords[0].search_volume == "high"
        assert result.improvements[0].priority == "high"
        assert result.improvements[0].applied is False
        assert result.insights == "Good start."
        assert result.suggested_title == "SEO Tips: 10 Steps"
        assert result.suggested_meta_description is None

    def test_missing_overall_score(self):
        payload = dict(ANALYSIS_RESPONSE)
        del payload["overallScore"]

        with pytest.raises(ProviderError, match="Malformed"):
            parse_analysis_response(json.dumps(payload))

    def test_out_of_range_score(self):
        payload = dict(ANALYSIS_RESPONSE, overallScore=140)

        with pytest.raises(ProviderError):
            parse_analysis_response(json.dumps(payload))

    def test_half_scores_round_up(self):
        payload = dict(ANALYSIS_RESPONSE, overallScore=72.5)
        payload["scores"] = dict(ANALYSIS_RESPONSE["scores"], readability=84.5)

        result = parse_analysis_response(json.dumps(payload))

        assert result.overall_score == 73
        assert result.scores.readability == 85


class TestAnthropicAnalysisProvider:
    """Tests for AnthropicAnalysisProvider with a mocked client."""

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with pytest.raises(ProviderUnavailable, match="No API key provided"):
            AnthropicAnalysisProvider()

    def test_analyze(self):
        client = make_client(json.dumps(ANALYSIS_RESPONSE))
        provider = AnthropicAnalysisProvider(client=client, model="test-model", max_tokens=500)

        result = provider.analyze("SEO Tips", "Body text.", ["seo tips"])

        assert result.overall_score == 79
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["max_tokens"] == 500
        assert "Target Keywords: seo tips" in kwargs["messages"][0]["content"]

    def test_api_failure_becomes_provider_error(self):
        client = MagicMock()
        client.messages.create.side_effect = RuntimeError("connection reset")
        provider = AnthropicAnalysisProvider(client=client)

        with pytest.raises(ProviderError, match="connection reset"):
            provider.analyze("T", "B", [])

    def test_garbage_response_becomes_provider_error(self):
        provider = AnthropicAnalysisProvider(client=make_client("I cannot help with that"))

        with pytest.raises(ProviderError):
            provider.analyze("T", "B", [])

    def test_rewrite_content(self):
        provider = AnthropicAnalysisProvider(client=make_client("  Improved body.  "))

        assert provider.rewrite_content("Body.", "Add detail", "Content") == "Improved body."

    def test_rewrite_content_empty(self):
        provider = AnthropicAnalysisProvider(client=make_client("   "))

        with pytest.raises(ProviderError, match="empty content"):
            provider.rewrite_content("Body.", "Add detail", "Content")

    def test_suggest_keywords(self):
        payload = {"keywords": [{"keyword": "coffee beans", "relevance": 81.4, "searchVolume": "low", "difficulty": "Hard"}]}
        provider = AnthropicAnalysisProvider(client=make_client(json.dumps(payload)))

        keywords = provider.suggest_keywords("coffee", [])

        assert len(keywords) == 1
        assert keywords[0].keyword == "coffee beans"
        assert keywords[0].relevance == 81
        assert keywords[0].difficulty == "hard"

    def test_generate_outline(self):
        payload = {
            "suggestedTitle": "Brewing Coffee at Home",
            "metaDescription": "How to brew.",
            "outline": [{"heading": "Equipment", "subheadings": ["Grinders"], "keyPoints": ["Burr vs blade"]}],
            "estimatedWordCount": 1500,
        }
        provider = AnthropicAnalysisProvider(client=make_client(json.dumps(payload)))

        outline = provider.generate_outline("brewing coffee", ["coffee"])

        assert outline["suggested_title"] == "Brewing Coffee at Home"
        assert outline["outline"][0]["key_points"] == ["Burr vs blade"]
        assert outline["estimated_word_count"] == 1500


class TestBuildAnalysisPrompt:
    def test_without_keywords(self):
        prompt = build_analysis_prompt("Title", "Body", [])

        assert "Target Keywords: Not specified" in prompt
        assert "Title: Title" in prompt
