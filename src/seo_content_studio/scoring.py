"""
Score aggregation and the deterministic fallback analysis.

An AI analysis, when available, is authoritative: its overall score and
category scores are stored verbatim. Without one, a heuristic score is
derived from title length, content length and keyword presence.
"""

import logging
from typing import Optional

from .config import StudioConfig
from .errors import ProviderUnavailable
from .llm_client import AnalysisProvider, AnthropicAnalysisProvider
from .models import AnalysisResult, Improvement, ScoreBreakdown, SuggestedKeyword
from .text_metrics import (
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
    analyze_keywords,
    analyze_title,
    calculate_readability,
    contains_keyword,
    extract_key_terms,
    paragraph_count,
    round_half_up,
    word_count,
)

logger = logging.getLogger(__name__)


FALLBACK_INSIGHTS = (
    "This is a basic analysis (no AI provider configured). Scores are estimated "
    "from title length, content length and keyword presence. Configure "
    "ANTHROPIC_API_KEY for detailed AI-powered insights."
)

# Fixed category scores used when no AI analysis is available
FALLBACK_READABILITY = 65
FALLBACK_META_DESCRIPTION = 50
FALLBACK_HEADING_STRUCTURE = 60

SUGGESTION_RELEVANCE = (85, 80, 75, 70, 65)


def title_band_score(title: Optional[str]) -> int:
    """80 for a 30-60 character title, 60 for any other title, 20 without one."""
    if not title:
        return 20
    return 80 if TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH else 60


def content_length_score(words: int) -> int:
    """Score content length in bands: 1000+, 500+, 200+ and below."""
    if words >= 1000:
        return 85
    if words >= 500:
        return 70
    if words >= 200:
        return 55
    return 40


def keyword_presence_score(keywords: list[str]) -> int:
    return 70 if keywords else 40


def fallback_overall_score(title: Optional[str], body: Optional[str], keywords: list[str]) -> int:
    """Rounded mean of the title, content-length and keyword signals."""
    signals = (
        title_band_score(title),
        content_length_score(word_count(body)),
        keyword_presence_score(keywords),
    )
    return round_half_up(sum(signals) / len(signals))


def _fallback_improvements(title: str, body: str, keywords: list[str]) -> list[Improvement]:
    """Derive improvement suggestions from the deterministic metrics."""
    improvements = []
    words = word_count(body)

    title_analysis = analyze_title(title, keywords)
    if title_analysis.issues:
        improvements.append(Improvement(
            category="Title",
            suggestion=title_analysis.suggestions[0],
            priority="high" if title_analysis.score < 60 else "medium",
            impact=7,
        ))

    if words < 300:
        improvements.append(Improvement(
            category="Content",
            suggestion="Expand the content to at least 300 words with detailed examples",
            priority="high",
            impact=8,
        ))
    elif words < 1000:
        improvements.append(Improvement(
            category="Content",
            suggestion="Aim for 1000+ words to cover the topic in depth",
            priority="medium",
            impact=6,
        ))

    if not keywords:
        improvements.append(Improvement(
            category="Keywords",
            suggestion="Set target keywords so usage and placement can be measured",
            priority="high",
            impact=7,
        ))
    else:
        keyword_analysis = analyze_keywords(body, keywords)
        if keyword_analysis.missing:
            improvements.append(Improvement(
                category="Keywords",
                suggestion=f"Use these target keywords in the content: {', '.join(keyword_analysis.missing)}",
                priority="high",
                impact=7,
            ))
        elif keyword_analysis.density < 1:
            improvements.append(Improvement(
                category="Keywords",
                suggestion="Increase keyword density to between 1% and 3%",
                priority="medium",
                impact=5,
            ))
        elif keyword_analysis.density > 3:
            improvements.append(Improvement(
                category="Keywords",
                suggestion="Reduce keyword repetition to keep density between 1% and 3%",
                priority="medium",
                impact=6,
            ))

        opening = " ".join(body.split()[:100])
        if not contains_keyword(opening, keywords):
            improvements.append(Improvement(
                category="Keywords",
                suggestion="Include target keywords in the first 100 words",
                priority="high",
                impact=7,
            ))

    if words and calculate_readability(body).score < 60:
        improvements.append(Improvement(
            category="Readability",
            suggestion="Shorten long sentences and prefer simpler words",
            priority="medium",
            impact=5,
        ))

    if words >= 150 and paragraph_count(body) <= 1:
        improvements.append(Improvement(
            category="Structure",
            suggestion="Break the content into shorter paragraphs under descriptive subheadings",
            priority="medium",
            impact=6,
        ))

    if not improvements:
        improvements.append(Improvement(
            category="Content",
            suggestion="Add examples and case studies to increase engagement",
            priority="low",
            impact=4,
        ))

    return improvements


def _fallback_keywords(title: str, body: str, keywords: list[str]) -> list[SuggestedKeyword]:
    """Suggest the most frequent content terms that are not already targeted."""
    targeted = {kw.lower() for kw in keywords}
    terms = [
        term for term, _ in extract_key_terms(f"{title}\n{body}", top_n=20)
        if term not in targeted
    ]
    return [
        SuggestedKeyword(keyword=term, relevance=relevance)
        for term, relevance in zip(terms, SUGGESTION_RELEVANCE)
    ]


class HeuristicAnalysisProvider(AnalysisProvider):
    """
    Deterministic analysis with no external dependencies.

    The same inputs always produce the same result.
    """

    name = "heuristic"

    def analyze(self, title: str, body: str, keywords: list[str]) -> AnalysisResult:
        title = title or ""
        body = body or ""
        title_score = title_band_score(title)
        content_score = content_length_score(word_count(body))
        keyword_score = keyword_presence_score(keywords)

        return AnalysisResult(
            overall_score=fallback_overall_score(title, body, keywords),
            scores=ScoreBreakdown(
                keyword_density=keyword_score,
                readability=FALLBACK_READABILITY,
                title_optimization=title_score,
                meta_description=FALLBACK_META_DESCRIPTION,
                heading_structure=FALLBACK_HEADING_STRUCTURE,
                content_length=content_score,
                keyword_placement=65 if keywords else 40,
            ),
            suggested_keywords=_fallback_keywords(title, body, keywords),
            improvements=_fallback_improvements(title, body, keywords),
            insights=FALLBACK_INSIGHTS,
            suggested_title=None,
            suggested_meta_description=None,
        )

    def suggest_keywords(self, topic: str, existing: list[str]) -> list[SuggestedKeyword]:
        topic = (topic or "").strip()
        if not topic:
            return []
        templates = [
            SuggestedKeyword(f"{topic} guide", 85, "medium", "medium"),
            SuggestedKeyword(f"{topic} tips", 80, "high", "easy"),
            SuggestedKeyword(f"how to {topic}", 78, "high", "medium"),
            SuggestedKeyword(f"{topic} best practices", 75, "medium", "medium"),
            SuggestedKeyword(f"{topic} examples", 70, "medium", "easy"),
        ]
        taken = {kw.lower() for kw in existing}
        return [kw for kw in templates if kw.keyword.lower() not in taken]


class ScoreAggregator:
    """
    Produce the analysis that gets stored for a content item.

    ProviderUnavailable from the primary provider switches to the
    deterministic fallback. ProviderError propagates to the caller.
    """

    def __init__(
        self,
        provider: Optional[AnalysisProvider] = None,
        fallback: Optional[AnalysisProvider] = None,
    ):
        self.provider = provider or HeuristicAnalysisProvider()
        self.fallback = fallback or HeuristicAnalysisProvider()

    def aggregate(self, title: str, body: str, keywords: list[str]) -> AnalysisResult:
        try:
            return self.provider.analyze(title, body, keywords)
        except ProviderUnavailable as e:
            logger.warning(f"{self.provider.name} provider unavailable, using heuristic scoring: {e}")
            return self.fallback.analyze(title, body, keywords)


def create_analysis_provider(config: StudioConfig) -> AnalysisProvider:
    """
    Build the analysis provider selected by configuration.

    Called once at startup; callers receive the provider by injection.

    Raises:
        ProviderUnavailable: If the Anthropic provider is forced without an API key.
    """
    if not config.use_ai:
        logger.info("Using heuristic analysis provider")
        return HeuristicAnalysisProvider()

    logger.info(f"Using Anthropic analysis provider ({config.ai_model})")
    return AnthropicAnalysisProvider(
        api_key=config.anthropic_api_key,
        model=config.ai_model,
        timeout=config.ai_timeout_seconds,
        connect_timeout=config.ai_connect_timeout_seconds,
        max_retries=config.ai_max_retries,
        max_tokens=config.ai_max_tokens,
        temperature=config.ai_temperature,
    )
