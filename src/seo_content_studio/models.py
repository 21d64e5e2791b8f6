"""
Data models for SEO Content Studio.

This module defines the content drafts, revision snapshots and analysis
records that flow between the metrics engine, the revision chain and the store.
"""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import math
import uuid

from .errors import ValidationError
from .text_metrics import WORDS_PER_MINUTE, word_count as count_words


TITLE_MAX_LENGTH = 200
META_DESCRIPTION_MAX_LENGTH = 160

SEARCH_VOLUME_TIERS = ("high", "medium", "low")
DIFFICULTY_TIERS = ("easy", "medium", "hard")
PRIORITY_LEVELS = ("high", "medium", "low")


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a new opaque identifier."""
    return uuid.uuid4().hex


def normalize_keywords(keywords: Optional[list[str]]) -> list[str]:
    """
    Trim keywords, drop empties and remove case-insensitive duplicates.

    Order and the casing of the first occurrence are preserved.
    """
    result: list[str] = []
    seen: set[str] = set()
    for keyword in keywords or []:
        phrase = (keyword or "").strip()
        if not phrase or phrase.lower() in seen:
            continue
        seen.add(phrase.lower())
        result.append(phrase)
    return result


class ContentStatus(Enum):
    """Lifecycle status of a content draft."""
    DRAFT = "draft"
    ANALYZING = "analyzing"
    OPTIMIZED = "optimized"
    PUBLISHED = "published"


# Allowed status transitions. Leaving ANALYZING for DRAFT, OPTIMIZED or
# PUBLISHED covers both success and rollback to the pre-analysis status.
STATUS_TRANSITIONS: dict[ContentStatus, frozenset[ContentStatus]] = {
    ContentStatus.DRAFT: frozenset({ContentStatus.ANALYZING, ContentStatus.PUBLISHED}),
    ContentStatus.ANALYZING: frozenset({
        ContentStatus.OPTIMIZED, ContentStatus.DRAFT, ContentStatus.PUBLISHED,
    }),
    ContentStatus.OPTIMIZED: frozenset({
        ContentStatus.ANALYZING, ContentStatus.PUBLISHED, ContentStatus.DRAFT,
    }),
    ContentStatus.PUBLISHED: frozenset({
        ContentStatus.ANALYZING, ContentStatus.DRAFT, ContentStatus.OPTIMIZED,
    }),
}


def can_transition(current: ContentStatus, target: ContentStatus) -> bool:
    """Check whether a status transition is allowed."""
    return target == current or target in STATUS_TRANSITIONS[current]


def _check_score(name: str, value: int) -> None:
    if not 0 <= value <= 100:
        raise ValidationError(f"{name} must be between 0 and 100, got {value}")


@dataclass
class ContentDraft:
    """
    A piece of content being drafted and optimized.

    Word count and reading time are derived from the body on every access,
    so they can never drift from the text.
    """
    owner_id: str
    title: str
    body: str
    body_html: str = ""
    meta_description: str = ""
    target_keywords: list[str] = field(default_factory=list)
    status: ContentStatus = ContentStatus.DRAFT
    current_score: int = 0
    revision_ids: list[str] = field(default_factory=list)
    latest_analysis_id: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        """Normalize editable fields."""
        self.title = (self.title or "").strip()
        self.body = self.body or ""
        self.body_html = self.body_html or ""
        self.meta_description = self.meta_description or ""
        self.target_keywords = normalize_keywords(self.target_keywords)

    @property
    def word_count(self) -> int:
        """Number of words in the body."""
        return count_words(self.body)

    @property
    def reading_time(self) -> int:
        """Estimated reading time in minutes."""
        return math.ceil(self.word_count / WORDS_PER_MINUTE)

    def validate(self) -> None:
        """
        Validate required fields and length limits.

        Raises:
            ValidationError: If the title or body is missing, or a field is too long.
        """
        if not self.title:
            raise ValidationError("Title is required")
        if len(self.title) > TITLE_MAX_LENGTH:
            raise ValidationError(
                f"Title cannot exceed {TITLE_MAX_LENGTH} characters"
            )
        if not self.body.strip():
            raise ValidationError("Content is required")
        if len(self.meta_description) > META_DESCRIPTION_MAX_LENGTH:
            raise ValidationError(
                f"Meta description should not exceed {META_DESCRIPTION_MAX_LENGTH} characters"
            )
        _check_score("SEO score", self.current_score)

    def apply_edits(
        self,
        title: Optional[str] = None,
        body: Optional[str] = None,
        body_html: Optional[str] = None,
        meta_description: Optional[str] = None,
        target_keywords: Optional[list[str]] = None,
    ) -> None:
        """
        Apply a partial edit. Fields passed as None keep their value.

        The edit is validated on a copy first, so a rejected edit leaves
        the draft unchanged.
        """
        changes = {
            name: value
            for name, value in (
                ("title", title),
                ("body", body),
                ("body_html", body_html),
                ("meta_description", meta_description),
                ("target_keywords", target_keywords),
            )
            if value is not None
        }
        edited = replace(self, **changes)
        edited.validate()
        for name in changes:
            setattr(self, name, getattr(edited, name))
        self.touch()

    def transition_to(self, status: ContentStatus) -> None:
        """
        Move to a new lifecycle status.

        Raises:
            ValidationError: If the transition is not allowed.
        """
        if not can_transition(self.status, status):
            raise ValidationError(
                f"Cannot change status from '{self.status.value}' to '{status.value}'"
            )
        self.status = status
        self.touch()

    def touch(self) -> None:
        self.updated_at = utc_now()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "body": self.body,
            "body_html": self.body_html,
            "meta_description": self.meta_description,
            "target_keywords": list(self.target_keywords),
            "status": self.status.value,
            "current_score": self.current_score,
            "revision_ids": list(self.revision_ids),
            "latest_analysis_id": self.latest_analysis_id,
            "word_count": self.word_count,
            "reading_time": self.reading_time,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class RevisionSnapshot:
    """The editable fields of a content draft at one point in time."""
    title: str
    body: str
    body_html: str = ""
    score: int = 0
    word_count: int = 0

    @classmethod
    def from_content(cls, content: ContentDraft) -> "RevisionSnapshot":
        """Capture the current state of a content draft."""
        return cls(
            title=content.title,
            body=content.body,
            body_html=content.body_html,
            score=content.current_score,
            word_count=content.word_count,
        )


@dataclass(frozen=True)
class Revision:
    """An immutable, versioned snapshot of a content draft."""
    content_id: str
    version: int
    title: str
    body: str
    body_html: str = ""
    score: int = 0
    word_count: int = 0
    change_description: str = "Content updated"
    analysis_id: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_snapshot(
        cls,
        content_id: str,
        version: int,
        snapshot: RevisionSnapshot,
        change_description: str,
    ) -> "Revision":
        if version < 1:
            raise ValidationError(f"Revision version must be >= 1, got {version}")
        return cls(
            content_id=content_id,
            version=version,
            title=snapshot.title,
            body=snapshot.body,
            body_html=snapshot.body_html,
            score=snapshot.score,
            word_count=snapshot.word_count,
            change_description=change_description,
        )

    @property
    def snapshot(self) -> RevisionSnapshot:
        return RevisionSnapshot(
            title=self.title,
            body=self.body,
            body_html=self.body_html,
            score=self.score,
            word_count=self.word_count,
        )

    def with_analysis(self, analysis_id: str) -> "Revision":
        """Return a copy carrying an analysis reference."""
        return replace(self, analysis_id=analysis_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content_id": self.content_id,
            "version": self.version,
            "title": self.title,
            "body": self.body,
            "body_html": self.body_html,
            "score": self.score,
            "word_count": self.word_count,
            "change_description": self.change_description,
            "analysis_id": self.analysis_id,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class RevisionComparison:
    """Two revisions of the same content with their score and length deltas."""
    first: Revision
    second: Revision

    @property
    def score_change(self) -> int:
        return self.second.score - self.first.score

    @property
    def word_count_change(self) -> int:
        return self.second.word_count - self.first.word_count

    def to_dict(self) -> dict:
        return {
            "revision1": self.first.to_dict(),
            "revision2": self.second.to_dict(),
            "differences": {
                "score_change": self.score_change,
                "word_count_change": self.word_count_change,
            },
        }


@dataclass
class ScoreBreakdown:
    """Per-category SEO sub-scores, each 0-100."""
    keyword_density: int = 0
    readability: int = 0
    title_optimization: int = 0
    meta_description: int = 0
    heading_structure: int = 0
    content_length: int = 0
    keyword_placement: int = 0

    def __post_init__(self) -> None:
        for name, value in asdict(self).items():
            _check_score(name, value)

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class SuggestedKeyword:
    """A keyword the analysis recommends targeting."""
    keyword: str
    relevance: int = 50
    search_volume: str = "medium"
    difficulty: str = "medium"

    def __post_init__(self) -> None:
        _check_score("relevance", self.relevance)
        if self.search_volume not in SEARCH_VOLUME_TIERS:
            raise ValidationError(f"Unknown search volume tier: {self.search_volume!r}")
        if self.difficulty not in DIFFICULTY_TIERS:
            raise ValidationError(f"Unknown difficulty tier: {self.difficulty!r}")

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Improvement:
    """An actionable suggestion that can later be marked as applied."""
    category: str
    suggestion: str
    priority: str = "medium"
    impact: int = 5
    applied: bool = False
    applied_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.priority not in PRIORITY_LEVELS:
            raise ValidationError(f"Unknown priority: {self.priority!r}")
        if not 1 <= self.impact <= 10:
            raise ValidationError(f"impact must be between 1 and 10, got {self.impact}")

    def mark_applied(self) -> None:
        self.applied = True
        self.applied_at = utc_now()

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "suggestion": self.suggestion,
            "priority": self.priority,
            "impact": self.impact,
            "applied": self.applied,
            "applied_at": self.applied_at.isoformat() if self.applied_at else None,
        }


@dataclass
class AnalysisResult:
    """Output of an analysis provider before it is persisted."""
    overall_score: int
    scores: ScoreBreakdown
    suggested_keywords: list[SuggestedKeyword] = field(default_factory=list)
    improvements: list[Improvement] = field(default_factory=list)
    insights: str = ""
    suggested_title: Optional[str] = None
    suggested_meta_description: Optional[str] = None

    def __post_init__(self) -> None:
        _check_score("overall_score", self.overall_score)


@dataclass
class Analysis:
    """A persisted analysis run for a content draft."""
    content_id: str
    overall_score: int
    scores: ScoreBreakdown
    suggested_keywords: list[SuggestedKeyword] = field(default_factory=list)
    improvements: list[Improvement] = field(default_factory=list)
    insights: str = ""
    suggested_title: Optional[str] = None
    suggested_meta_description: Optional[str] = None
    revision_id: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_result(
        cls,
        result: AnalysisResult,
        content_id: str,
        revision_id: Optional[str] = None,
    ) -> "Analysis":
        """Build an analysis record; every improvement starts unapplied."""
        improvements = [
            Improvement(
                category=imp.category,
                suggestion=imp.suggestion,
                priority=imp.priority,
                impact=imp.impact,
            )
            for imp in result.improvements
        ]
        return cls(
            content_id=content_id,
            overall_score=result.overall_score,
            scores=result.scores,
            suggested_keywords=list(result.suggested_keywords),
            improvements=improvements,
            insights=result.insights,
            suggested_title=result.suggested_title,
            suggested_meta_description=result.suggested_meta_description,
            revision_id=revision_id,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content_id": self.content_id,
            "revision_id": self.revision_id,
            "overall_score": self.overall_score,
            "scores": self.scores.to_dict(),
            "suggested_keywords": [kw.to_dict() for kw in self.suggested_keywords],
            "improvements": [imp.to_dict() for imp in self.improvements],
            "insights": self.insights,
            "suggested_title": self.suggested_title,
            "suggested_meta_description": self.suggested_meta_description,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class ContentPage:
    """One page of a content listing."""
    items: list[ContentDraft]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> dict:
        return {
            "count": len(self.items),
            "total": self.total,
            "pages": self.pages,
            "current_page": self.page,
            "data": [item.to_dict() for item in self.items],
        }


@dataclass
class ContentStats:
    """Aggregate statistics over one owner's content."""
    total_drafts: int = 0
    average_score: float = 0.0
    total_words: int = 0
    draft_count: int = 0
    optimized_count: int = 0
    published_count: int = 0
    recent: list[ContentDraft] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "stats": {
                "total_drafts": self.total_drafts,
                "average_score": round(self.average_score, 1),
                "total_words": self.total_words,
                "draft_count": self.draft_count,
                "optimized_count": self.optimized_count,
                "published_count": self.published_count,
            },
            "recent_content": [
                {
                    "id": item.id,
                    "title": item.title,
                    "current_score": item.current_score,
                    "updated_at": item.updated_at.isoformat(),
                }
                for item in self.recent
            ],
        }
