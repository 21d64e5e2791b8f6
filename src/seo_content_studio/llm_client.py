"""
LLM client abstraction for SEO analysis.

This module defines the analysis provider interface and an implementation
backed by Claude (Anthropic). The provider is the only non-deterministic
collaborator of the core: given a title, body and target keywords it
returns a structured score/suggestion object, or raises.
"""

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import Literal, Optional

import anthropic
import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .config import DEFAULT_MODEL
from .errors import ProviderError, ProviderUnavailable
from .models import AnalysisResult, Improvement, ScoreBreakdown, SuggestedKeyword
from .text_metrics import round_half_up

logger = logging.getLogger(__name__)


ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert SEO analyst. Always respond with valid JSON only, "
    "no additional text or markdown formatting."
)

REWRITE_SYSTEM_PROMPT = (
    "You are an expert content editor. Apply the given SEO suggestion to improve "
    "the content. Return only the improved content."
)

KEYWORDS_SYSTEM_PROMPT = "You are an SEO keyword research expert. Always respond with valid JSON only."

OUTLINE_SYSTEM_PROMPT = (
    "You are an SEO content strategist. Create detailed content outlines optimized "
    "for search engines. Always respond with valid JSON only."
)

_CODE_FENCE = re.compile(r"```(?:json)?\s*\n?|\n?```")


class AnalysisProvider(ABC):
    """
    Capability that scores content and proposes improvements.

    Only `analyze` is required. The other capabilities raise
    ProviderUnavailable unless a provider supports them.
    """

    name = "provider"

    @abstractmethod
    def analyze(self, title: str, body: str, keywords: list[str]) -> AnalysisResult:
        """
        Analyze content for SEO.

        Raises:
            ProviderUnavailable: If the provider cannot run at all.
            ProviderError: If the provider ran but failed or returned garbage.
        """

    def suggest_keywords(self, topic: str, existing: list[str]) -> list[SuggestedKeyword]:
        raise ProviderUnavailable(f"{self.name} provider cannot suggest keywords")

    def rewrite_content(self, body: str, suggestion: str, category: str) -> str:
        raise ProviderUnavailable(
            "AI provider not configured. Set ANTHROPIC_API_KEY to apply suggestions automatically."
        )

    def generate_outline(self, topic: str, keywords: list[str]) -> dict:
        raise ProviderUnavailable(
            "AI provider not configured. Set ANTHROPIC_API_KEY to generate outlines."
        )


# Response schemas. The model is prompted for camelCase keys; validation
# turns a malformed response into a ProviderError instead of a partial record.

class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class _ScoresPayload(_Payload):
    keyword_density: float = Field(0, ge=0, le=100, alias="keywordDensity")
    readability: float = Field(0, ge=0, le=100)
    title_optimization: float = Field(0, ge=0, le=100, alias="titleOptimization")
    meta_description: float = Field(0, ge=0, le=100, alias="metaDescription")
    heading_structure: float = Field(0, ge=0, le=100, alias="headingStructure")
    content_length: float = Field(0, ge=0, le=100, alias="contentLength")
    keyword_placement: float = Field(0, ge=0, le=100, alias="keywordPlacement")


class _KeywordPayload(_Payload):
    keyword: str = Field(..., min_length=1)
    relevance: float = Field(50, ge=0, le=100)
    search_volume: Literal["high", "medium", "low"] = Field("medium", alias="searchVolume")
    difficulty: Literal["easy", "medium", "hard"] = "medium"

    @field_validator("search_volume", "difficulty", mode="before")
    @classmethod
    def _lowercase(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class _ImprovementPayload(_Payload):
    category: str = Field(..., min_length=1)
    suggestion: str = Field(..., min_length=1)
    priority: Literal["high", "medium", "low"] = "medium"
    impact: float = Field(5, ge=1, le=10)

    @field_validator("priority", mode="before")
    @classmethod
    def _lowercase(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class _AnalysisPayload(_Payload):
    overall_score: float = Field(..., ge=0, le=100, alias="overallScore")
    scores: _ScoresPayload = Field(default_factory=_ScoresPayload)
    suggested_keywords: list[_KeywordPayload] = Field(default_factory=list, alias="suggestedKeywords")
    improvements: list[_ImprovementPayload] = Field(default_factory=list)
    ai_insights: str = Field("", alias="aiInsights")
    suggested_title: Optional[str] = Field(None, alias="suggestedTitle")
    suggested_meta_description: Optional[str] = Field(None, alias="suggestedMetaDescription")


class _KeywordListPayload(_Payload):
    keywords: list[_KeywordPayload] = Field(default_factory=list)


class _OutlineSection(_Payload):
    heading: str
    subheadings: list[str] = Field(default_factory=list)
    key_points: list[str] = Field(default_factory=list, alias="keyPoints")


class _OutlinePayload(_Payload):
    suggested_title: str = Field("", alias="suggestedTitle")
    meta_description: str = Field("", alias="metaDescription")
    outline: list[_OutlineSection] = Field(default_factory=list)
    estimated_word_count: int = Field(0, ge=0, alias="estimatedWordCount")
    keyword_placement: dict = Field(default_factory=dict, alias="keywordPlacement")


def _to_keyword(payload: _KeywordPayload) -> SuggestedKeyword:
    return SuggestedKeyword(
        keyword=payload.keyword,
        relevance=round_half_up(payload.relevance),
        search_volume=payload.search_volume,
        difficulty=payload.difficulty,
    )


def extract_json(text: str) -> dict:
    """
    Parse a JSON object from a model response, tolerating markdown code fences.

    Raises:
        ProviderError: If the text is not a JSON object.
    """
    cleaned = _CODE_FENCE.sub("", text or "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ProviderError(f"Failed to parse AI analysis response: {e}")
    if not isinstance(data, dict):
        raise ProviderError("AI response was not a JSON object")
    return data


def parse_analysis_response(text: str) -> AnalysisResult:
    """
    Convert a raw model response into an AnalysisResult.

    Reported scores are taken verbatim (rounded to whole numbers).

    Raises:
        ProviderError: If the response is not valid JSON or misses required fields.
    """
    data = extract_json(text)
    try:
        payload = _AnalysisPayload.model_validate(data)
    except PydanticValidationError as e:
        raise ProviderError(f"Malformed AI analysis response: {e.error_count()} invalid field(s)")

    scores = payload.scores
    return AnalysisResult(
        overall_score=round_half_up(payload.overall_score),
        scores=ScoreBreakdown(
            keyword_density=round_half_up(scores.keyword_density),
            readability=round_half_up(scores.readability),
            title_optimization=round_half_up(scores.title_optimization),
            meta_description=round_half_up(scores.meta_description),
            heading_structure=round_half_up(scores.heading_structure),
            content_length=round_half_up(scores.content_length),
            keyword_placement=round_half_up(scores.keyword_placement),
        ),
        suggested_keywords=[_to_keyword(kw) for kw in payload.suggested_keywords],
        improvements=[
            Improvement(
                category=imp.category,
                suggestion=imp.suggestion,
                priority=imp.priority,
                impact=round_half_up(imp.impact),
            )
            for imp in payload.improvements
        ],
        insights=payload.ai_insights,
        suggested_title=payload.suggested_title or None,
        suggested_meta_description=payload.suggested_meta_description or None,
    )


def build_analysis_prompt(title: str, body: str, keywords: list[str]) -> str:
    """Build the user prompt for a full SEO analysis."""
    keyword_line = ", ".join(keywords) if keywords else "Not specified"
    return f"""You are an expert SEO analyst. Analyze the following content for SEO optimization and provide a detailed analysis.

Title: {title}

Content:
{body}

Target Keywords: {keyword_line}

Provide your analysis in the following JSON format ONLY (no additional text):
{{
  "overallScore": <number 0-100>,
  "scores": {{
    "keywordDensity": <number 0-100>,
    "readability": <number 0-100>,
    "titleOptimization": <number 0-100>,
    "metaDescription": <number 0-100>,
    "headingStructure": <number 0-100>,
    "contentLength": <number 0-100>,
    "keywordPlacement": <number 0-100>
  }},
  "suggestedKeywords": [
    {{
      "keyword": "<keyword>",
      "relevance": <number 0-100>,
      "searchVolume": "<high|medium|low>",
      "difficulty": "<easy|medium|hard>"
    }}
  ],
  "improvements": [
    {{
      "category": "<Title|Meta Description|Content|Keywords|Structure|Readability>",
      "suggestion": "<specific actionable suggestion>",
      "priority": "<high|medium|low>",
      "impact": <number 1-10>
    }}
  ],
  "aiInsights": "<2-3 sentences of overall insights and recommendations>",
  "suggestedTitle": "<optimized title suggestion>",
  "suggestedMetaDescription": "<optimized meta description under 160 characters>"
}}

Important guidelines:
- Be specific and actionable in your suggestions
- Consider keyword placement in title, first paragraph, and throughout
- Evaluate readability for general audience (aim for 8th grade level)
- Suggest 5-8 relevant keywords
- Provide 4-6 improvement suggestions
- Keep meta description under 160 characters"""


class AnthropicAnalysisProvider(AnalysisProvider):
    """
    Analysis provider backed by the Anthropic Messages API.

    Timeouts and transport retries are configured on the HTTP client;
    this class never retries on its own.
    """

    name = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        connect_timeout: float = 30.0,
        max_retries: int = 2,
        max_tokens: int = 2000,
        temperature: float = 0.7,
        client=None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: API key. If None, reads from ANTHROPIC_API_KEY env var.
            model: Model identifier to use.
            timeout: Overall request timeout in seconds.
            connect_timeout: Connection timeout in seconds.
            max_retries: Retries performed by the Anthropic client.
            max_tokens: Maximum tokens per response.
            temperature: Sampling temperature.
            client: Pre-built Anthropic client (mainly for tests).

        Raises:
            ProviderUnavailable: If no client is given and no API key is configured.
        """
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

        if client is None:
            if not self.api_key:
                raise ProviderUnavailable(
                    "No API key provided. Set ANTHROPIC_API_KEY environment variable "
                    "or pass api_key parameter."
                )
            http_client = httpx.Client(
                timeout=httpx.Timeout(timeout, connect=connect_timeout),
                follow_redirects=True,
            )
            client = anthropic.Anthropic(
                api_key=self.api_key,
                http_client=http_client,
                max_retries=max_retries,
            )
        self.client = client

    def _complete(self, system: str, prompt: str, max_tokens: Optional[int] = None) -> str:
        """Send one message and return the text of the reply."""
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens or self.max_tokens,
                temperature=self.temperature,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
            return response.content[0].text.strip()
        except Exception as e:
            logger.error(f"Anthropic API call failed: {e}")
            raise ProviderError(f"LLM API call failed: {e}") from e

    def analyze(self, title: str, body: str, keywords: list[str]) -> AnalysisResult:
        text = self._complete(ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt(title, body, keywords))
        return parse_analysis_response(text)

    def rewrite_content(self, body: str, suggestion: str, category: str) -> str:
        prompt = f"""You are an expert content editor specializing in SEO optimization.

Original Content:
{body}

Improvement Suggestion:
Category: {category}
Suggestion: {suggestion}

Apply the suggestion to improve the content. Return ONLY the improved content, maintaining the original tone and style while incorporating the SEO improvement."""

        improved = self._complete(REWRITE_SYSTEM_PROMPT, prompt)
        if not improved:
            raise ProviderError("AI returned empty content")
        return improved

    def suggest_keywords(self, topic: str, existing: list[str]) -> list[SuggestedKeyword]:
        existing_line = ", ".join(existing) if existing else "None"
        prompt = f"""Generate SEO keyword suggestions for the following topic.

Topic: {topic}
Existing Keywords: {existing_line}

Provide 10 keyword suggestions in the following JSON format ONLY:
{{
  "keywords": [
    {{
      "keyword": "<keyword phrase>",
      "relevance": <number 0-100>,
      "searchVolume": "<high|medium|low>",
      "difficulty": "<easy|medium|hard>"
    }}
  ]
}}"""

        data = extract_json(self._complete(KEYWORDS_SYSTEM_PROMPT, prompt, max_tokens=1000))
        try:
            payload = _KeywordListPayload.model_validate(data)
        except PydanticValidationError as e:
            raise ProviderError(f"Malformed keyword suggestions: {e.error_count()} invalid field(s)")
        return [_to_keyword(kw) for kw in payload.keywords]

    def generate_outline(self, topic: str, keywords: list[str]) -> dict:
        prompt = f"""Create an SEO-optimized content outline for the following:

Topic: {topic}
Target Keywords: {", ".join(keywords)}

Provide the outline in JSON format:
{{
  "suggestedTitle": "<SEO-optimized title>",
  "metaDescription": "<under 160 characters>",
  "outline": [
    {{
      "heading": "<H2 heading>",
      "subheadings": ["<H3>", "<H3>"],
      "keyPoints": ["<point>", "<point>"]
    }}
  ],
  "estimatedWordCount": <number>,
  "keywordPlacement": {{
    "title": "<keyword to include>",
    "introduction": ["<keywords>"],
    "body": ["<keywords>"],
    "conclusion": ["<keywords>"]
  }}
}}"""

        data = extract_json(self._complete(OUTLINE_SYSTEM_PROMPT, prompt, max_tokens=1500))
        try:
            payload = _OutlinePayload.model_validate(data)
        except PydanticValidationError as e:
            raise ProviderError(f"Malformed content outline: {e.error_count()} invalid field(s)")
        return payload.model_dump()
