"""Tests for score aggregation and the heuristic fallback."""

import pytest

from seo_content_studio.config import StudioConfig
from seo_content_studio.errors import ProviderError, ProviderUnavailable
from seo_content_studio.llm_client import AnalysisProvider, AnthropicAnalysisProvider
from seo_content_studio.scoring import (
    FALLBACK_INSIGHTS,
    HeuristicAnalysisProvider,
    ScoreAggregator,
    content_length_score,
    create_analysis_provider,
    fallback_overall_score,
    title_band_score,
)


class UnavailableProvider(AnalysisProvider):
    name = "unavailable"

    def analyze(self, title, body, keywords):
        raise ProviderUnavailable("no key")


class TestFallbackSignals:
    """Tests for the three heuristic signals."""

    @pytest.mark.parametrize("title,expected", [
        ("", 20),
        (None, 20),
        ("x" * 29, 60),
        ("x" * 30, 80),
        ("x" * 60, 80),
        ("x" * 61, 60),
    ])
    def test_title_band_score(self, title, expected):
        assert title_band_score(title) == expected

    @pytest.mark.parametrize("words,expected", [
        (0, 40),
        (199, 40),
        (200, 55),
        (499, 55),
        (500, 70),
        (999, 70),
        (1000, 85),
    ])
    def test_content_length_score_boundaries(self, words, expected):
        assert content_length_score(words) == expected

    def test_overall_score_for_empty_content(self):
        assert fallback_overall_score("", "", []) == 33

    def test_overall_score_for_long_keyworded_content(self):
        title = "A Practical Guide to Writing for Search"
        body = " ".join(["word"] * 1000)

        assert fallback_overall_score(title, body, ["search"]) == 78


class TestHeuristicAnalysisProvider:
    """Tests for the deterministic analysis provider."""

    def test_is_deterministic(self, sample_body: str):
        provider = HeuristicAnalysisProvider()

        first = provider.analyze("SEO tips", sample_body, ["seo tips"])
        second = provider.analyze("SEO tips", sample_body, ["seo tips"])

        assert first == second

    def test_does_not_suggest_the_existing_title(self, sample_body: str):
        result = HeuristicAnalysisProvider().analyze("SEO tips", sample_body, ["seo tips"])

        assert result.suggested_title is None
        assert result.suggested_meta_description is None

    def test_breakdown_uses_signal_scores(self):
        provider = HeuristicAnalysisProvider()
        body = " ".join(["word"] * 600)

        result = provider.analyze("A Practical Guide to Writing for Search", body, ["search"])

        assert result.overall_score == round((80 + 70 + 70) / 3)
        assert result.scores.title_optimization == 80
        assert result.scores.content_length == 70
        assert result.scores.keyword_density == 70
        assert result.scores.keyword_placement == 65
        assert result.insights == FALLBACK_INSIGHTS

    def test_improvements_for_thin_content(self):
        result = HeuristicAnalysisProvider().analyze("Hi", "Too short.", [])

        categories = [imp.category for imp in result.improvements]
        assert "Title" in categories
        assert "Content" in categories
        assert "Keywords" in categories
        assert all(not imp.applied for imp in result.improvements)

    def test_suggested_keywords_skip_targets(self, sample_body: str):
        result = HeuristicAnalysisProvider().analyze("SEO tips", sample_body, ["tips"])

        keywords = [kw.keyword for kw in result.suggested_keywords]
        assert "tips" not in keywords
        assert len(keywords) <= 5

    def test_suggest_keywords_templates(self):
        suggestions = HeuristicAnalysisProvider().suggest_keywords("coffee", ["Coffee Tips"])

        keywords = [kw.keyword for kw in suggestions]
        assert keywords == ["coffee guide", "how to coffee", "coffee best practices", "coffee examples"]

    def test_rewrite_and_outline_unavailable(self):
        provider = HeuristicAnalysisProvider()

        with pytest.raises(ProviderUnavailable):
            provider.rewrite_content("body", "suggestion", "Content")
        with pytest.raises(ProviderUnavailable):
            provider.generate_outline("topic", [])


class TestScoreAggregator:
    """Tests for provider selection at analysis time."""

    def test_uses_ai_result_verbatim(self, fake_provider):
        result = ScoreAggregator(fake_provider).aggregate("T", "Body.", [])

        assert result.overall_score == 72
        assert result.scores.readability == 80
        assert fake_provider.calls == [("T", "Body.", [])]

    def test_falls_back_when_unavailable(self):
        result = ScoreAggregator(UnavailableProvider()).aggregate("", "", [])

        assert result.overall_score == 33
        assert result.insights == FALLBACK_INSIGHTS

    def test_provider_error_propagates(self, failing_provider):
        with pytest.raises(ProviderError):
            ScoreAggregator(failing_provider).aggregate("T", "Body.", [])

    def test_defaults_to_heuristic(self):
        aggregator = ScoreAggregator()

        assert isinstance(aggregator.provider, HeuristicAnalysisProvider)


class TestCreateAnalysisProvider:
    """Tests for startup provider selection."""

    def test_heuristic_mode(self):
        provider = create_analysis_provider(StudioConfig(ai_provider="heuristic", anthropic_api_key="key"))

        assert isinstance(provider, HeuristicAnalysisProvider)

    def test_auto_without_key(self):
        provider = create_analysis_provider(StudioConfig(ai_provider="auto"))

        assert isinstance(provider, HeuristicAnalysisProvider)

    def test_auto_with_key(self):
        provider = create_analysis_provider(StudioConfig(ai_provider="auto", anthropic_api_key="test-key"))

        assert isinstance(provider, AnthropicAnalysisProvider)
        assert provider.model == StudioConfig().ai_model

    def test_forced_anthropic_without_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with pytest.raises(ProviderUnavailable):
            create_analysis_provider(StudioConfig(ai_provider="anthropic"))
