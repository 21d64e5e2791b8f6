"""
SEO Content Studio

Content drafting and optimization backend that:
- Computes deterministic SEO metrics for a title, body and target keywords
- Scores content with an AI provider or a deterministic fallback
- Keeps an append-only revision history with restore and compare
"""

__version__ = "1.0.0"
__author__ = "SEO Content Studio Team"

from .config import StudioConfig, ProviderMode

from .errors import (
    StudioError,
    NotFound,
    ValidationError,
    InvalidComparison,
    ProviderUnavailable,
    ProviderError,
    VersionConflict,
    KeywordLoadError,
)

from .models import (
    ContentStatus,
    ContentDraft,
    RevisionSnapshot,
    Revision,
    RevisionComparison,
    ScoreBreakdown,
    SuggestedKeyword,
    Improvement,
    AnalysisResult,
    Analysis,
    ContentPage,
    ContentStats,
)

from .text_metrics import (
    BasicMetrics,
    ChecklistItem,
    KeywordAnalysis,
    TitleAnalysis,
    ReadabilityResult,
    analyze_keywords,
    analyze_title,
    calculate_readability,
    compute_basic_metrics,
    generate_checklist,
)

from .llm_client import AnalysisProvider, AnthropicAnalysisProvider
from .scoring import HeuristicAnalysisProvider, ScoreAggregator, create_analysis_provider
from .store import ContentStore
from .revisions import RevisionChain
from .service import ContentService, AnalysisReport, AppliedSuggestion
from .keyword_loader import load_keywords

__all__ = [
    # Configuration
    "StudioConfig",
    "ProviderMode",
    # Errors
    "StudioError",
    "NotFound",
    "ValidationError",
    "InvalidComparison",
    "ProviderUnavailable",
    "ProviderError",
    "VersionConflict",
    "KeywordLoadError",
    # Models
    "ContentStatus",
    "ContentDraft",
    "RevisionSnapshot",
    "Revision",
    "RevisionComparison",
    "ScoreBreakdown",
    "SuggestedKeyword",
    "Improvement",
    "AnalysisResult",
    "Analysis",
    "ContentPage",
    "ContentStats",
    # Text metrics
    "BasicMetrics",
    "ChecklistItem",
    "KeywordAnalysis",
    "TitleAnalysis",
    "ReadabilityResult",
    "analyze_keywords",
    "analyze_title",
    "calculate_readability",
    "compute_basic_metrics",
    "generate_checklist",
    # Scoring
    "AnalysisProvider",
    "AnthropicAnalysisProvider",
    "HeuristicAnalysisProvider",
    "ScoreAggregator",
    "create_analysis_provider",
    # Persistence and history
    "ContentStore",
    "RevisionChain",
    # Service layer
    "ContentService",
    "AnalysisReport",
    "AppliedSuggestion",
    # Keyword import
    "load_keywords",
]
