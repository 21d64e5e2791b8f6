"""
Request-level operations for SEO Content Studio.

ContentService ties the content store, the revision chain, the metrics
engine and the injected analysis provider together. Each call is
independent; there is no shared mutable state outside the store.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Literal, Optional

from .config import StudioConfig
from .errors import NotFound, ProviderUnavailable, ValidationError
from .llm_client import AnalysisProvider
from .models import (
    Analysis,
    ContentDraft,
    ContentPage,
    ContentStats,
    ContentStatus,
    Improvement,
    Revision,
    RevisionComparison,
    SuggestedKeyword,
    can_transition,
)
from .revisions import (
    DEFAULT_CHANGE_DESCRIPTION,
    INITIAL_CHANGE_DESCRIPTION,
    MANUAL_CHANGE_DESCRIPTION,
    RevisionChain,
)
from .scoring import ScoreAggregator, create_analysis_provider
from .store import ContentStore
from .text_metrics import BasicMetrics, ChecklistItem, compute_basic_metrics, generate_checklist

logger = logging.getLogger(__name__)


NO_ANALYSIS_MESSAGE = "No analysis found. Please analyze the content first."

ApplyType = Literal["auto", "manual"]


@dataclass
class AnalysisReport:
    """An analysis together with the deterministic metrics for the same text."""
    analysis: Analysis
    metrics: BasicMetrics
    checklist: list[ChecklistItem] = field(default_factory=list)
    content: Optional[ContentDraft] = None

    def to_dict(self) -> dict:
        data = {
            "analysis": self.analysis.to_dict(),
            "basic_metrics": self.metrics.to_dict(),
            "checklist": [item.to_dict() for item in self.checklist],
        }
        if self.content is not None:
            data["content"] = {
                "id": self.content.id,
                "title": self.content.title,
                "current_score": self.content.current_score,
                "status": self.content.status.value,
            }
        return data


@dataclass
class AppliedSuggestion:
    """Result of applying one improvement from the latest analysis."""
    improvement: Improvement
    content: Optional[ContentDraft] = None
    revision: Optional[Revision] = None

    def to_dict(self) -> dict:
        return {
            "suggestion": self.improvement.to_dict(),
            "content": self.content.to_dict() if self.content else None,
            "revision": self.revision.to_dict() if self.revision else None,
        }


class ContentService:
    """
    Content drafting, analysis and history operations scoped to an owner.

    The analysis provider is injected; a deterministic fallback takes over
    whenever it reports ProviderUnavailable.
    """

    def __init__(
        self,
        store: ContentStore,
        provider: Optional[AnalysisProvider] = None,
        config: Optional[StudioConfig] = None,
    ):
        self.config = config or StudioConfig()
        self.store = store
        self.aggregator = ScoreAggregator(provider)
        self.provider = self.aggregator.provider
        self.revisions = RevisionChain(store, conflict_retries=self.config.revision_conflict_retries)

    @classmethod
    def from_config(cls, config: StudioConfig) -> "ContentService":
        """Build the store and the configured provider once, at startup."""
        store = ContentStore.from_config(config)
        store.create_all()
        return cls(store=store, provider=create_analysis_provider(config), config=config)

    # Content

    def create_content(
        self,
        owner_id: str,
        title: str,
        body: str,
        body_html: str = "",
        meta_description: str = "",
        target_keywords: Optional[list[str]] = None,
    ) -> ContentDraft:
        """Create a draft and record it as version 1."""
        content = ContentDraft(
            owner_id=owner_id,
            title=title,
            body=body,
            body_html=body_html,
            meta_description=meta_description,
            target_keywords=target_keywords or [],
        )
        content.validate()
        self.store.save_content(content)
        self.revisions.append(content, INITIAL_CHANGE_DESCRIPTION)
        logger.info(f"Created content {content.id} for owner {owner_id}")
        return content

    def get_content(self, content_id: str, owner_id: str) -> ContentDraft:
        return self.store.load_content(content_id, owner_id)

    def update_content(
        self,
        content_id: str,
        owner_id: str,
        title: Optional[str] = None,
        body: Optional[str] = None,
        body_html: Optional[str] = None,
        meta_description: Optional[str] = None,
        target_keywords: Optional[list[str]] = None,
        status: Optional[ContentStatus] = None,
        create_revision: bool = False,
        change_description: Optional[str] = None,
    ) -> ContentDraft:
        """
        Apply a partial edit, optionally recording a revision of the new state.

        A status change is checked before anything is written, so a rejected
        status leaves the stored content as it was.
        """
        content = self.store.load_content(content_id, owner_id)
        if status is not None:
            self._check_status_change(content, status)
        content.apply_edits(
            title=title,
            body=body,
            body_html=body_html,
            meta_description=meta_description,
            target_keywords=target_keywords,
        )
        if status is not None:
            content.transition_to(status)
        if create_revision:
            self.revisions.append(content, change_description or DEFAULT_CHANGE_DESCRIPTION)
        self.store.save_content(content)
        return content

    def set_status(self, content_id: str, owner_id: str, status: ContentStatus) -> ContentDraft:
        """Change the lifecycle status, e.g. to publish a draft."""
        content = self.store.load_content(content_id, owner_id)
        self._check_status_change(content, status)
        content.transition_to(status)
        self.store.save_content(content)
        return content

    @staticmethod
    def _check_status_change(content: ContentDraft, status: ContentStatus) -> None:
        if status == ContentStatus.ANALYZING:
            raise ValidationError("Status 'analyzing' is set only while an analysis runs")
        if not can_transition(content.status, status):
            raise ValidationError(
                f"Cannot change status from '{content.status.value}' to '{status.value}'"
            )

    def delete_content(self, content_id: str, owner_id: str) -> None:
        self.store.delete_content(content_id, owner_id)

    def list_contents(
        self,
        owner_id: str,
        status: Optional[ContentStatus] = None,
        sort: str = "created",
        limit: Optional[int] = None,
        page: int = 1,
    ) -> ContentPage:
        return self.store.list_contents(
            owner_id,
            status=status,
            sort=sort,
            limit=limit or self.config.default_page_size,
            page=page,
        )

    def content_stats(self, owner_id: str) -> ContentStats:
        return self.store.content_stats(owner_id)

    # Revisions

    def create_revision(
        self,
        content_id: str,
        owner_id: str,
        changes: Optional[str] = None,
    ) -> Revision:
        """Snapshot the current state of a content draft on demand."""
        content = self.store.load_content(content_id, owner_id)
        return self.revisions.append(content, changes or MANUAL_CHANGE_DESCRIPTION)

    def list_revisions(self, content_id: str, owner_id: str) -> list[Revision]:
        return self.revisions.history(content_id, owner_id)

    def get_revision(self, revision_id: str, owner_id: str) -> Revision:
        return self.revisions.get(revision_id, owner_id)

    def compare_revisions(self, first_id: str, second_id: str, owner_id: str) -> RevisionComparison:
        return self.revisions.compare(first_id, second_id, owner_id)

    def restore_revision(self, revision_id: str, owner_id: str) -> ContentDraft:
        content, _ = self.revisions.restore_from(revision_id, owner_id)
        return content

    # Analysis

    def analyze_content(self, content_id: str, owner_id: str) -> AnalysisReport:
        """
        Run an analysis and mirror its score onto the content.

        The content is marked 'analyzing' while the provider runs. If anything
        fails after that, the status returns to what it was before, the score
        is untouched and no analysis is stored. Content left in 'analyzing' by
        an earlier crash is treated as a draft.

        Raises:
            NotFound: If the content is not owned by the caller.
            ProviderError: If the configured AI provider fails.
        """
        content = self.store.load_content(content_id, owner_id)
        previous_status = content.status
        if previous_status == ContentStatus.ANALYZING:
            previous_status = ContentStatus.DRAFT
        content.transition_to(ContentStatus.ANALYZING)
        self.store.save_content(content)

        try:
            result = self.aggregator.aggregate(content.title, content.body, content.target_keywords)
            latest = self.store.latest_revision(content.id)
            analysis = Analysis.from_result(
                result,
                content_id=content.id,
                revision_id=latest.id if latest else None,
            )
            analyzed = replace(
                content,
                current_score=analysis.overall_score,
                latest_analysis_id=analysis.id,
            )
            analyzed.transition_to(ContentStatus.OPTIMIZED)
            self.store.record_analysis(analysis, analyzed)
        except Exception:
            logger.error(f"Analysis failed for content {content_id}; restoring status '{previous_status.value}'")
            content.transition_to(previous_status)
            self.store.save_content(content)
            raise

        logger.info(f"Stored analysis {analysis.id} for content {content.id} (score {analysis.overall_score})")
        return AnalysisReport(
            analysis=analysis,
            metrics=compute_basic_metrics(analyzed.title, analyzed.body, analyzed.target_keywords),
            content=analyzed,
        )

    def get_analysis(self, content_id: str, owner_id: str) -> AnalysisReport:
        """
        Latest analysis with freshly computed metrics and checklist.

        Raises:
            NotFound: If the content is missing or has never been analyzed.
        """
        content = self.store.load_content(content_id, owner_id)
        analysis = self.store.latest_analysis(content.id)
        if analysis is None:
            raise NotFound(NO_ANALYSIS_MESSAGE)
        return AnalysisReport(
            analysis=analysis,
            metrics=compute_basic_metrics(content.title, content.body, content.target_keywords),
            checklist=generate_checklist(
                content.title, content.body, content.meta_description, content.target_keywords
            ),
        )

    def analysis_history(self, content_id: str, owner_id: str) -> list[Analysis]:
        self.store.load_content(content_id, owner_id)
        return self.store.list_analyses(content_id)

    def apply_suggestion(
        self,
        content_id: str,
        owner_id: str,
        suggestion_index: int,
        apply_type: ApplyType = "manual",
    ) -> AppliedSuggestion:
        """
        Apply one improvement from the latest analysis.

        With apply_type "auto" the provider rewrites the body and the result
        is recorded as a new revision. Either way the improvement is marked applied.

        Raises:
            NotFound: If the content, analysis or suggestion does not exist.
            ProviderUnavailable: For "auto" without an AI provider.
        """
        if apply_type not in ("auto", "manual"):
            raise ValidationError(f"apply_type must be 'auto' or 'manual', got '{apply_type}'")

        content = self.store.load_content(content_id, owner_id)
        analysis = self.store.latest_analysis(content.id)
        if analysis is None or not 0 <= suggestion_index < len(analysis.improvements):
            raise NotFound("Suggestion not found")
        improvement = analysis.improvements[suggestion_index]

        result = AppliedSuggestion(improvement=improvement)
        if apply_type == "auto":
            improved = self.provider.rewrite_content(
                content.body, improvement.suggestion, improvement.category
            )
            content.apply_edits(body=improved)
            result.revision = self.revisions.append(
                content, f"Applied suggestion: {improvement.suggestion}"
            )
            self.store.save_content(content)
            result.content = content

        improvement.mark_applied()
        self.store.update_improvements(analysis)
        return result

    def keyword_suggestions(self, content_id: str, owner_id: str) -> list[SuggestedKeyword]:
        """Suggest keywords for a content draft's title topic."""
        content = self.store.load_content(content_id, owner_id)
        try:
            return self.provider.suggest_keywords(content.title, content.target_keywords)
        except ProviderUnavailable as e:
            logger.warning(f"Keyword suggestions falling back to templates: {e}")
            return self.aggregator.fallback.suggest_keywords(content.title, content.target_keywords)

    def generate_outline(self, topic: str, keywords: Optional[list[str]] = None) -> dict:
        """
        Raises:
            ValidationError: If the topic is empty.
            ProviderUnavailable: If no AI provider is configured.
        """
        if not topic or not topic.strip():
            raise ValidationError("Topic is required")
        return self.provider.generate_outline(topic.strip(), keywords or [])

    @staticmethod
    def basic_metrics(
        title: str,
        body: str,
        keywords: Optional[list[str]] = None,
        meta_description: str = "",
    ) -> tuple[BasicMetrics, list[ChecklistItem]]:
        """Metrics and checklist for ad-hoc text, without touching the store."""
        keywords = keywords or []
        return (
            compute_basic_metrics(title, body, keywords),
            generate_checklist(title, body, meta_description, keywords),
        )
