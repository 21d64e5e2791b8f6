"""
Pytest fixtures and configuration for SEO Content Studio tests.
"""

from pathlib import Path

import pytest

from seo_content_studio.config import StudioConfig
from seo_content_studio.errors import ProviderError
from seo_content_studio.llm_client import AnalysisProvider
from seo_content_studio.models import AnalysisResult, Improvement, ScoreBreakdown, SuggestedKeyword
from seo_content_studio.service import ContentService
from seo_content_studio.store import ContentStore


class FakeAIProvider(AnalysisProvider):
    """AI provider stand-in returning a fixed analysis and recording calls."""

    name = "fake-ai"

    def __init__(self, overall_score: int = 72):
        self.overall_score = overall_score
        self.calls = []
        self.rewrites = []

    def analyze(self, title, body, keywords):
        self.calls.append((title, body, list(keywords)))
        return AnalysisResult(
            overall_score=self.overall_score,
            scores=ScoreBreakdown(
                keyword_density=70,
                readability=80,
                title_optimization=75,
                meta_description=40,
                heading_structure=60,
                content_length=65,
                keyword_placement=70,
            ),
            suggested_keywords=[SuggestedKeyword("seo checklist", 88, "high", "easy")],
            improvements=[
                Improvement("Title", "Add a number to the title", "medium", 6),
                Improvement("Content", "Add a section on internal linking", "high", 8),
            ],
            insights="Solid draft with room for better structure.",
            suggested_title="10 SEO Tips for Beginners",
            suggested_meta_description="Learn ten practical SEO tips.",
        )

    def rewrite_content(self, body, suggestion, category):
        self.rewrites.append((suggestion, category))
        return f"{body}\n\nRewritten for: {suggestion}"

    def suggest_keywords(self, topic, existing):
        return [SuggestedKeyword(f"{topic} checklist", 90, "high", "easy")]

    def generate_outline(self, topic, keywords):
        return {"suggested_title": f"{topic}: A Guide", "outline": [], "keywords": list(keywords)}


class FailingProvider(AnalysisProvider):
    """Provider that always fails mid-call."""

    name = "failing"

    def analyze(self, title, body, keywords):
        raise ProviderError("LLM API call failed: upstream timeout")


@pytest.fixture
def store() -> ContentStore:
    """Fresh in-memory content store."""
    content_store = ContentStore("sqlite:///:memory:")
    content_store.create_all()
    return content_store


@pytest.fixture
def config() -> StudioConfig:
    return StudioConfig(ai_provider="heuristic", database_url="sqlite:///:memory:")


@pytest.fixture
def fake_provider() -> FakeAIProvider:
    return FakeAIProvider()


@pytest.fixture
def failing_provider() -> FailingProvider:
    return FailingProvider()


@pytest.fixture
def service(store: ContentStore, config: StudioConfig) -> ContentService:
    """Service using the deterministic heuristic provider."""
    return ContentService(store=store, config=config)


@pytest.fixture
def ai_service(store: ContentStore, config: StudioConfig, fake_provider: FakeAIProvider) -> ContentService:
    """Service using the fake AI provider."""
    return ContentService(store=store, provider=fake_provider, config=config)


@pytest.fixture
def sample_body() -> str:
    """Two-paragraph body mentioning 'seo tips' three times."""
    return (
        "Good seo tips help new writers rank. Start with a clear topic and a focused keyword.\n\n"
        "These seo tips cover titles, headings and links. Apply the seo tips one at a time."
    )


@pytest.fixture
def sample_keywords_csv(tmp_path: Path) -> Path:
    """Create a sample keywords CSV file."""
    csv_path = tmp_path / "keywords.csv"
    csv_path.write_text(
        "Keyword,Search Volume,Difficulty\n"
        "seo tips,1200,45\n"
        "content optimization,800,50\n"
        "SEO Tips,300,25\n"
        "keyword research,2500,60\n"
        ",100,10\n"
    )
    return csv_path


@pytest.fixture
def sample_keywords_excel(tmp_path: Path) -> Path:
    """Create a sample keywords Excel file."""
    import pandas as pd

    xlsx_path = tmp_path / "keywords.xlsx"
    df = pd.DataFrame({
        "query": ["meta description", "title tags", "internal links"],
        "volume": [400, 900, 600],
    })
    df.to_excel(xlsx_path, index=False)
    return xlsx_path
